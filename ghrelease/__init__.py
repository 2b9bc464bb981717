"""
ghrelease: publish build artifacts to GitHub releases.

This package provides core primitives:
- ReleaseConfig: resolved options of one release run.
- CredentialResolver: picks password or token credentials from the environment or settings.
- ReleaseClient: requests-based wrapper over the releases API.
- FileSet / select_files: Ant-style include/exclude file selection.
- ReleaseUploader: creates the release and uploads the selected files.

Meant to run as one step of a build pipeline, after packaging.
"""

from .errors import ReleaseError, ConfigurationError, ConflictError, NetworkError, RemoteAPIError
from .auth import (
    Credential,
    PasswordCredential,
    TokenCredential,
    Server,
    Decrypter,
    PlainTextDecrypter,
    EnvironmentDecrypter,
    CredentialResolver,
)
from .client import Asset, Release, ReleaseClient
from .config import Config, ReleaseConfig
from .fileset import FileSet, select_files
from .release import ReleaseUploader, UploadResult
from .repository import compute_repository_id
from .versioning import guess_prerelease

__all__ = [
    # Errors
    "ReleaseError",
    "ConfigurationError",
    "ConflictError",
    "NetworkError",
    "RemoteAPIError",
    # Credentials
    "Credential",
    "PasswordCredential",
    "TokenCredential",
    "Server",
    "Decrypter",
    "PlainTextDecrypter",
    "EnvironmentDecrypter",
    "CredentialResolver",
    # API
    "Asset",
    "Release",
    "ReleaseClient",
    # Configuration
    "Config",
    "ReleaseConfig",
    # Files
    "FileSet",
    "select_files",
    # Orchestration
    "ReleaseUploader",
    "UploadResult",
    "compute_repository_id",
    "guess_prerelease",
]
