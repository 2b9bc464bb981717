"""
Release upload orchestration.

Looks up the release by name, reuses/deletes/fails on an existing one,
creates the release and uploads the selected files one at a time.
Partial progress (a created release, uploaded assets) is never rolled back.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from .auth import Credential, CredentialResolver
from .client import Release, ReleaseClient
from .config import ReleaseConfig
from .errors import ConflictError, ReleaseError
from .fileset import select_files


logger = logging.getLogger(__name__)

ASSET_CONTENT_TYPE = "application/zip"

ClientFactory = Callable[[Credential, str], ReleaseClient]


@dataclass
class UploadResult:
    """Outcome of a release run."""

    release: Optional[Release] = None
    uploaded: List[str] = field(default_factory=list)
    replaced: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    deleted_release: bool = False
    dry_run: bool = False

    def to_dict(self) -> dict:
        return {
            "release": self.release.name if self.release else None,
            "release_id": self.release.id if self.release else None,
            "uploaded": list(self.uploaded),
            "replaced": list(self.replaced),
            "skipped": list(self.skipped),
            "deleted_release": self.deleted_release,
            "dry_run": self.dry_run,
        }


class ReleaseUploader:
    """Create a release and attach build artifacts to it.

    The API client is built once per run from the resolved credential and
    passed explicitly to every step.
    """

    def __init__(
        self,
        config: ReleaseConfig,
        resolver: Optional[CredentialResolver] = None,
        client_factory: Optional[ClientFactory] = None,
    ) -> None:
        self.config = config
        self.resolver = resolver or CredentialResolver()
        self.client_factory = client_factory or (lambda credential, api_url: ReleaseClient(credential, api_url=api_url))

    def execute(self, dry_run: bool = False) -> UploadResult:
        try:
            config = self.config.resolved()
            if dry_run:
                return self._dry_run(config)
            credential = self.resolver.resolve(config.server_id)
            client = self.client_factory(credential, config.api_url)
            result = UploadResult()
            result.release = self._create_release(client, config, result)
            self._upload_assets(client, config, result)
            return result
        except (ReleaseError, OSError) as e:
            logger.error("Release %s failed: %s", self.config.release_name or self.config.tag, e)
            raise
        except Exception:
            logger.exception("Release %s failed unexpectedly", self.config.release_name or self.config.tag)
            raise

    def _create_release(self, client: ReleaseClient, config: ReleaseConfig, result: UploadResult) -> Release:
        existing = client.find_release_by_name(config.repository_id, config.release_name)
        if existing is not None:
            if config.fail_on_existing_release:
                raise ConflictError(config.release_name, config.repository_id)
            if config.delete_release:
                logger.info("Removing existing release %s...", existing.name)
                client.delete_release(existing)
                result.deleted_release = True
                logger.info("Release %s removed successfully.", existing.name)
            else:
                # Creation still proceeds; the API decides whether the duplicate is accepted.
                logger.info("Release %s already exists.", config.release_name)

        logger.info("Creating release %s", config.release_name)
        return client.create_release(
            config.repository_id,
            tag=config.tag,
            name=config.release_name,
            prerelease=config.prerelease,
            body=config.description,
            commitish=config.commitish,
            draft=config.draft,
        )

    def _upload_assets(self, client: ReleaseClient, config: ReleaseConfig, result: UploadResult) -> None:
        for path in select_files(config.artifact, config.file_set, config.file_sets):
            self._upload_asset(client, result.release, path, config.overwrite_artifact, result)

    def _upload_asset(
        self,
        client: ReleaseClient,
        release: Release,
        path: Path,
        overwrite: bool,
        result: UploadResult,
    ) -> None:
        logger.info("Processing asset %s", path)
        replaced = False
        for asset in client.list_assets(release):
            if asset.name != path.name:
                continue
            if not overwrite:
                logger.warning("Asset %s already exists. Skipping", path.name)
                result.skipped.append(path.name)
                return
            logger.info("  Deleting existing asset %s", asset.name)
            client.delete_asset(release, asset)
            replaced = True

        logger.info("  Uploading asset %s", path.name)
        client.upload_asset(release, path, ASSET_CONTENT_TYPE)
        result.uploaded.append(path.name)
        if replaced:
            result.replaced.append(path.name)

    def _dry_run(self, config: ReleaseConfig) -> UploadResult:
        files = select_files(config.artifact, config.file_set, config.file_sets)
        logger.info(
            "Dry run: would create release %s (tag %s, prerelease=%s) in %s",
            config.release_name, config.tag, config.prerelease, config.repository_id,
        )
        for path in files:
            logger.info("Dry run: would upload %s", path)
        return UploadResult(uploaded=[p.name for p in files], dry_run=True)
