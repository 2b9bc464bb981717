"""Configuration management for ghrelease."""
from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional
import yaml

from .auth import Server
from .errors import ConfigurationError
from .fileset import FileSet
from .repository import compute_repository_id, git_remote_url
from .versioning import guess_prerelease


GLOBAL_CONFIG_PATH = Path.home() / ".ghrelease.yaml"
SETTINGS_ENV_VAR = "GHRELEASE_SETTINGS"
DEFAULT_SERVER_ID = "github"
DEFAULT_API_URL = "https://api.github.com"

# Option keys accepted in a project config file
RELEASE_KEYS = (
    "server_id",
    "api_url",
    "tag",
    "release_name",
    "description",
    "commitish",
    "draft",
    "repository_id",
    "artifact",
    "file_set",
    "file_sets",
    "overwrite_artifact",
    "delete_release",
    "prerelease",
    "fail_on_existing_release",
)


def global_config_path() -> Path:
    env = os.environ.get(SETTINGS_ENV_VAR)
    return Path(env).expanduser() if env else GLOBAL_CONFIG_PATH


class Config:
    """Manages ghrelease configuration with hierarchical lookup.

    Config hierarchy (higher priority first):
    1. Project config (.ghrelease.yaml next to the repository's .git)
    2. Global settings (~/.ghrelease.yaml, or $GHRELEASE_SETTINGS)

    Server credentials normally live in the global settings file.
    When writing, writes to the config path specified at init.
    """

    def __init__(self, config_path: Optional[Path] = None, enable_hierarchy: bool = True):
        """Initialize config.

        Args:
            config_path: Specific config file to use. If None, uses global settings.
            enable_hierarchy: If True, falls back to global settings for missing keys.
        """
        self.global_path = global_config_path()
        self.config_path = Path(config_path) if config_path else self.global_path
        self.enable_hierarchy = enable_hierarchy
        self._data: dict[str, Any] = {}
        self._global_data: dict[str, Any] = {}
        self.load()

    @staticmethod
    def _read(path: Path) -> dict[str, Any]:
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to load config from {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {path} must contain a mapping")
        return data

    def load(self) -> None:
        """Load configuration from file(s)."""
        self._data = self._read(self.config_path) if self.config_path.exists() else {}

        if self.enable_hierarchy and self.config_path != self.global_path and self.global_path.exists():
            self._global_data = self._read(self.global_path)
        else:
            self._global_data = {}

    def save(self) -> None:
        """Save configuration to primary config file."""
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, "w") as f:
                yaml.safe_dump(self._data, f, default_flow_style=False)
        except OSError as e:
            raise ConfigurationError(f"Failed to save config to {self.config_path}: {e}") from e

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value, checking the primary file then global settings."""
        if key in self._data:
            return self._data[key]
        if key in self._global_data:
            return self._global_data[key]
        return default

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value in the primary config."""
        self._data[key] = value

    @property
    def project(self) -> dict[str, Any]:
        """The ``project`` section used to derive defaults (name, version, build_directory, ...)."""
        return self.get("project") or {}

    @property
    def servers(self) -> List[Server]:
        """Server entries, primary file first."""
        entries = list(self._data.get("servers") or []) + list(self._global_data.get("servers") or [])
        return [Server.from_dict(e) for e in entries]

    def get_server(self, server_id: str) -> Optional[Server]:
        """Return the first server entry with the given id, or None."""
        for server in self.servers:
            if server.id == server_id:
                return server
        return None

    def set_server(self, server: Server) -> None:
        """Add or replace a server entry in the primary config."""
        entries = [e for e in (self._data.get("servers") or []) if e.get("id") != server.id]
        entries.append(server.to_dict())
        self._data["servers"] = entries

    def remove_server(self, server_id: str) -> bool:
        """Remove a server entry from the primary config. Returns True if one was removed."""
        entries = self._data.get("servers") or []
        kept = [e for e in entries if e.get("id") != server_id]
        self._data["servers"] = kept
        return len(kept) != len(entries)

    @classmethod
    def load_with_repo_context(cls, start_path: Optional[Path] = None) -> Config:
        """Load config with project context if available.

        Uses the project's .ghrelease.yaml with global fallback when found,
        otherwise the global settings only.
        """
        from .paths import get_project_config_path

        project_config_path = get_project_config_path(start_path)
        if project_config_path:
            return cls(config_path=project_config_path, enable_hierarchy=True)
        return cls(enable_hierarchy=False)


def _optional_bool(value: Any) -> Optional[bool]:
    if value is None or isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("true", "yes", "1", "on"):
        return True
    if text in ("false", "no", "0", "off"):
        return False
    raise ConfigurationError(f"Expected a boolean, got {value!r}")


def _file_set(value: Any) -> Optional[FileSet]:
    if value is None or isinstance(value, FileSet):
        return value
    if not isinstance(value, dict):
        raise ConfigurationError(f"fileSet must be a mapping, got {value!r}")
    return FileSet.from_dict(value)


@dataclass(frozen=True)
class ReleaseConfig:
    """Resolved options of one release run."""

    tag: Optional[str] = None
    repository_id: Optional[str] = None
    release_name: Optional[str] = None
    description: Optional[str] = None
    commitish: Optional[str] = None
    draft: Optional[bool] = None
    prerelease: Optional[bool] = None
    artifact: Optional[str] = None
    file_set: Optional[FileSet] = None
    file_sets: List[FileSet] = field(default_factory=list)
    overwrite_artifact: bool = False
    delete_release: bool = False
    fail_on_existing_release: bool = False
    server_id: str = DEFAULT_SERVER_ID
    api_url: str = DEFAULT_API_URL

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> ReleaseConfig:
        """Build from a plain mapping (config file contents or CLI overrides). Unknown keys are ignored."""
        values = {k: raw[k] for k in RELEASE_KEYS if raw.get(k) is not None}
        for key in ("draft", "prerelease"):
            if key in values:
                values[key] = _optional_bool(values[key])
        for key in ("overwrite_artifact", "delete_release", "fail_on_existing_release"):
            if key in values:
                values[key] = bool(_optional_bool(values[key]))
        if "file_set" in values:
            values["file_set"] = _file_set(values["file_set"])
        if "file_sets" in values:
            values["file_sets"] = [_file_set(fs) for fs in values["file_sets"]]
        for key in ("tag", "release_name", "description", "commitish", "repository_id", "artifact", "server_id", "api_url"):
            if key in values:
                values[key] = str(values[key])
        return cls(**values)

    @classmethod
    def from_config(
        cls,
        config: Config,
        overrides: Optional[Dict[str, Any]] = None,
        cwd: Optional[Path] = None,
    ) -> ReleaseConfig:
        """Merge config file values, CLI overrides and project-derived defaults.

        Precedence: overrides > config file keys > ``project`` section defaults.
        """
        merged: Dict[str, Any] = {k: config.get(k) for k in RELEASE_KEYS}
        for key, value in (overrides or {}).items():
            if value is not None:
                merged[key] = value

        project = config.project
        version = project.get("version")
        if merged.get("tag") is None and version:
            merged["tag"] = version
        if merged.get("description") is None and project.get("description"):
            merged["description"] = project["description"]
        if merged.get("repository_id") is None:
            merged["repository_id"] = project.get("scm_url") or git_remote_url(cwd)
        if merged.get("artifact") is None and project.get("name") and version:
            build_dir = project.get("build_directory", "dist")
            packaging = project.get("packaging", "zip")
            merged["artifact"] = str(Path(build_dir) / f"{project['name']}-{version}.{packaging}")
        return cls.from_dict(merged)

    def resolved(self) -> ReleaseConfig:
        """Return a copy with release name, prerelease flag and repository id defaulted."""
        if not self.tag:
            raise ConfigurationError("A tag is required to create a release")
        if not self.repository_id:
            raise ConfigurationError("A repository id is required (owner/repo or a git URL)")
        return replace(
            self,
            release_name=self.release_name if self.release_name is not None else self.tag,
            prerelease=self.prerelease if self.prerelease is not None else guess_prerelease(self.tag),
            repository_id=compute_repository_id(self.repository_id),
        )
