from __future__ import annotations

import logging
import os
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping, Optional, Protocol, Union

import requests
from requests.auth import AuthBase, HTTPBasicAuth

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

USERNAME_ENV_VAR = "GHRELEASE_USERNAME"
PASSWORD_ENV_VAR = "GHRELEASE_PASSWORD"

_ENV_REF_RE = re.compile(r"\$\{(\w+)\}|\$(\w+)")


class TokenAuth(AuthBase):
    """Bearer token authentication for requests."""

    def __init__(self, token: str):
        self.token = token

    def __call__(self, r: requests.PreparedRequest) -> requests.PreparedRequest:
        r.headers["Authorization"] = f"token {self.token}"
        return r


@dataclass(frozen=True)
class PasswordCredential:
    username: str
    password: str

    def requests_auth(self) -> AuthBase:
        return HTTPBasicAuth(self.username, self.password)

    def __repr__(self) -> str:
        return f"PasswordCredential(username={self.username!r}, password='***')"


@dataclass(frozen=True)
class TokenCredential:
    token: str

    def requests_auth(self) -> AuthBase:
        return TokenAuth(self.token)

    def __repr__(self) -> str:
        return "TokenCredential(token='***')"


Credential = Union[PasswordCredential, TokenCredential]


@dataclass(frozen=True)
class Server:
    """A named credential entry from the settings file.

    ``private_key`` holds an access token.
    """

    id: str
    username: Optional[str] = None
    password: Optional[str] = None
    private_key: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> Server:
        if not raw.get("id"):
            raise ConfigurationError(f"Server entry without an 'id': {sorted(raw)}")
        return cls(
            id=str(raw["id"]),
            username=raw.get("username"),
            password=raw.get("password"),
            private_key=raw.get("private_key") or raw.get("token"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"id": self.id}
        for key in ("username", "password", "private_key"):
            value = getattr(self, key)
            if value:
                data[key] = value
        return data


class Decrypter(ABC):
    """Turns a stored server entry into one holding usable secrets."""

    @abstractmethod
    def decrypt(self, server: Server) -> Server:
        """Return a server entry with decrypted username, password and token."""


class PlainTextDecrypter(Decrypter):
    """Secrets are stored as-is."""

    def decrypt(self, server: Server) -> Server:
        return server


class EnvironmentDecrypter(Decrypter):
    """Expand ``$VAR`` / ``${VAR}`` references in secrets from the environment.

    Lets a settings file say ``private_key: ${GITHUB_TOKEN}`` instead of
    storing the token itself. Unknown variables are left untouched.
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None) -> None:
        self.environ = environ

    def _expand(self, value: Optional[str]) -> Optional[str]:
        if not value:
            return value
        environ = os.environ if self.environ is None else self.environ
        return _ENV_REF_RE.sub(lambda m: environ.get(m.group(1) or m.group(2), m.group(0)), value)

    def decrypt(self, server: Server) -> Server:
        return replace(
            server,
            username=self._expand(server.username),
            password=self._expand(server.password),
            private_key=self._expand(server.private_key),
        )


class ServerLookup(Protocol):
    def get_server(self, server_id: str) -> Optional[Server]: ...


class CredentialResolver:
    """Pick the credential used to talk to the API.

    Order:
    1. GHRELEASE_USERNAME + GHRELEASE_PASSWORD from the environment (settings are not consulted)
    2. the named server entry, after decryption: username + password
    3. the named server entry, after decryption: private_key token
    """

    def __init__(
        self,
        settings: Optional[ServerLookup] = None,
        decrypter: Optional[Decrypter] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.settings = settings
        self.decrypter = decrypter or PlainTextDecrypter()
        self.environ = os.environ if environ is None else environ

    def resolve(self, server_id: str) -> Credential:
        username = self.environ.get(USERNAME_ENV_VAR)
        password = self.environ.get(PASSWORD_ENV_VAR)
        if username is not None and password is not None:
            logger.debug("Using credentials from %s and %s", USERNAME_ENV_VAR, PASSWORD_ENV_VAR)
            return PasswordCredential(username, password)

        server = self.settings.get_server(server_id) if self.settings is not None else None
        if server is None:
            raise ConfigurationError(f"Server '{server_id}' not found in settings")

        logger.debug("Using '%s' server credentials", server_id)
        server = self.decrypter.decrypt(server)

        if server.username and server.password:
            return PasswordCredential(server.username, server.password)
        if server.private_key:
            return TokenCredential(server.private_key)
        raise ConfigurationError(f"Configuration for server {server_id} has no login credentials")
