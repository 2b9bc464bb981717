"""Client for the GitHub releases API."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator, List, Optional, Union

import requests

from .auth import Credential
from .errors import NetworkError, RemoteAPIError

logger = logging.getLogger(__name__)

API_VERSION = "2022-11-28"
REQUEST_TIMEOUT = 60
PAGE_SIZE = 100


@dataclass(frozen=True)
class Asset:
    """A file attached to a release."""

    id: int
    name: str
    content_type: str = "application/octet-stream"
    size: int = 0
    url: Optional[str] = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Asset:
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            content_type=data.get("content_type") or "application/octet-stream",
            size=int(data.get("size") or 0),
            url=data.get("url"),
        )


@dataclass(frozen=True)
class Release:
    """A release as returned by the API; the local process only holds this handle."""

    id: int
    repository_id: str
    name: Optional[str]
    tag_name: str
    body: Optional[str] = None
    target_commitish: Optional[str] = None
    draft: bool = False
    prerelease: bool = False
    upload_url: Optional[str] = None
    assets: List[Asset] = field(default_factory=list)

    @classmethod
    def from_api(cls, repository_id: str, data: dict[str, Any]) -> Release:
        return cls(
            id=data["id"],
            repository_id=repository_id,
            name=data.get("name"),
            tag_name=data.get("tag_name", ""),
            body=data.get("body"),
            target_commitish=data.get("target_commitish"),
            draft=bool(data.get("draft", False)),
            prerelease=bool(data.get("prerelease", False)),
            upload_url=data.get("upload_url"),
            assets=[Asset.from_api(a) for a in data.get("assets") or []],
        )


class ReleaseClient:
    """Thin synchronous wrapper over the releases endpoints.

    Every method is one or more blocking round-trips. HTTP errors become
    RemoteAPIError, transport errors NetworkError. Nothing is retried.
    """

    def __init__(
        self,
        credential: Credential,
        api_url: str = "https://api.github.com",
        session: Optional[requests.Session] = None,
    ):
        self.credential = credential
        self.api_url = api_url.rstrip("/")
        self.session = session or requests.Session()
        self.session.headers.update({
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": API_VERSION,
        })
        self._auth = credential.requests_auth()

    def _send(
        self,
        method: str,
        url: str,
        json: Optional[dict[str, Any]] = None,
        params: Optional[dict[str, Any]] = None,
        data: Any = None,
        headers: Optional[dict[str, str]] = None,
    ) -> requests.Response:
        """Make a request and map failures onto the release error types."""
        try:
            response = self.session.request(
                method=method,
                url=url,
                json=json,
                params=params,
                data=data,
                headers=headers,
                auth=self._auth,
                timeout=REQUEST_TIMEOUT,
            )
            response.raise_for_status()
            return response
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            message = str(e)
            details: dict[str, Any] = {}
            try:
                details = e.response.json()
                if "message" in details:
                    message = details["message"]
            except ValueError:
                pass
            raise RemoteAPIError(f"{method} {url} failed: {message}", status_code=status, details=details) from e
        except requests.exceptions.RequestException as e:
            raise NetworkError(f"{method} {url} failed: {e}") from e

    @staticmethod
    def _json(response: requests.Response, method: str, url: str) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise RemoteAPIError(f"{method} {url} returned an invalid JSON body", status_code=response.status_code) from e

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self.api_url}{path}"
        response = self._send(method, url, **kwargs)
        if response.status_code == 204 or not response.content:
            return None
        return self._json(response, method, url)

    def _paginate(self, path: str) -> Iterator[dict[str, Any]]:
        """Yield items across pages by following the Link rel="next" header."""
        url: Optional[str] = f"{self.api_url}{path}"
        params: Optional[dict[str, Any]] = {"per_page": PAGE_SIZE}
        while url:
            response = self._send("GET", url, params=params)
            yield from self._json(response, "GET", url) or []
            url = response.links.get("next", {}).get("url")
            # next links already carry the query string
            params = None

    # Releases
    def list_releases(self, repository_id: str) -> Iterator[Release]:
        """Iterate over all releases of a repository, fetching pages lazily."""
        for item in self._paginate(f"/repos/{repository_id}/releases"):
            yield Release.from_api(repository_id, item)

    def find_release_by_name(self, repository_id: str, name: str) -> Optional[Release]:
        """Return the first release whose name equals name exactly."""
        for release in self.list_releases(repository_id):
            if release.name == name:
                return release
        return None

    def create_release(
        self,
        repository_id: str,
        tag: str,
        name: str,
        prerelease: bool,
        body: Optional[str] = None,
        commitish: Optional[str] = None,
        draft: Optional[bool] = None,
    ) -> Release:
        """Create a release. Arguments left as None are omitted so the API applies its defaults."""
        payload: dict[str, Any] = {"tag_name": tag, "name": name, "prerelease": prerelease}
        if body is not None:
            payload["body"] = body
        if commitish is not None:
            payload["target_commitish"] = commitish
        if draft is not None:
            payload["draft"] = draft
        data = self._request("POST", f"/repos/{repository_id}/releases", json=payload)
        if not data:
            raise RemoteAPIError(f"Creating release {name} in {repository_id} returned no release data")
        return Release.from_api(repository_id, data)

    def delete_release(self, release: Release) -> None:
        self._request("DELETE", f"/repos/{release.repository_id}/releases/{release.id}")

    # Assets
    def list_assets(self, release: Release) -> List[Asset]:
        return [Asset.from_api(a) for a in self._paginate(f"/repos/{release.repository_id}/releases/{release.id}/assets")]

    def delete_asset(self, release: Release, asset: Asset) -> None:
        self._request("DELETE", f"/repos/{release.repository_id}/releases/assets/{asset.id}")

    def upload_asset(self, release: Release, path: Union[str, Path], content_type: str) -> Asset:
        """Upload a local file to the release under its base name."""
        path = Path(path)
        if not release.upload_url:
            raise RemoteAPIError(f"Release {release.name} has no upload URL")
        upload_url = release.upload_url.split("{", 1)[0]
        with open(path, "rb") as fh:
            response = self._send(
                "POST",
                upload_url,
                params={"name": path.name},
                data=fh,
                headers={"Content-Type": content_type},
            )
        return Asset.from_api(self._json(response, "POST", upload_url))
