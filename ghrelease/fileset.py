from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from .errors import ConfigurationError

PathLike = Union[str, Path]

logger = logging.getLogger(__name__)

# Version-control and editor droppings never selected by a file set.
DEFAULT_EXCLUDES = (
    "**/*~",
    "**/#*#",
    "**/.#*",
    "**/%*%",
    "**/._*",
    "**/CVS/**",
    "**/.cvsignore",
    "**/.svn/**",
    "**/.git/**",
    "**/.gitignore",
    "**/.gitattributes",
    "**/.hg/**",
    "**/.hgignore",
    "**/.bzr/**",
    "**/.DS_Store",
)


def _split_patterns(value: Union[None, str, Iterable[str]]) -> List[str]:
    """Accept a comma-joined string or a list of patterns (entries may themselves be comma-joined)."""
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    patterns: List[str] = []
    for item in value:
        patterns.extend(p.strip() for p in str(item).split(",") if p.strip())
    return patterns


def glob_to_regex(pattern: str) -> re.Pattern[str]:
    """Translate an Ant-style glob into a compiled regex over '/'-separated relative paths.

    - ``*`` matches within one path segment
    - ``?`` matches exactly one character other than '/'
    - ``**`` matches zero or more whole segments
    - a trailing '/' is shorthand for '/**'
    """
    pattern = pattern.replace("\\", "/")
    if pattern.endswith("/"):
        pattern += "**"
    segments = [s for s in pattern.split("/") if s]
    parts: List[str] = []
    for i, seg in enumerate(segments):
        last = i == len(segments) - 1
        if seg == "**":
            parts.append(".*" if last else "(?:[^/]+/)*")
            continue
        buf = ""
        for ch in seg:
            if ch == "*":
                buf += "[^/]*"
            elif ch == "?":
                buf += "[^/]"
            else:
                buf += re.escape(ch)
        parts.append(buf if last else buf + "/")
    return re.compile("^" + "".join(parts) + "$")


@dataclass(frozen=True)
class FileSet:
    """A base directory plus include/exclude glob patterns.

    Patterns may be passed as lists or comma-joined strings. Unless
    ``use_default_excludes`` is False, DEFAULT_EXCLUDES are applied on top
    of ``excludes``.
    """

    directory: str
    includes: List[str] = field(default_factory=list)
    excludes: List[str] = field(default_factory=list)
    use_default_excludes: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "includes", _split_patterns(self.includes))
        object.__setattr__(self, "excludes", _split_patterns(self.excludes))

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> FileSet:
        directory = raw.get("directory")
        if not directory:
            raise ConfigurationError("fileSet requires a 'directory'")
        return cls(
            directory=str(directory),
            includes=raw.get("includes"),
            excludes=raw.get("excludes"),
            use_default_excludes=str(raw.get("use_default_excludes", True)).lower() not in ("false", "no", "off", "0"),
        )

    def matches(self, relative_path: str) -> bool:
        includes = self.includes or ["**"]
        if not any(glob_to_regex(p).match(relative_path) for p in includes):
            return False
        excludes = list(self.excludes)
        if self.use_default_excludes:
            excludes.extend(DEFAULT_EXCLUDES)
        return not any(glob_to_regex(p).match(relative_path) for p in excludes)

    def files(self) -> List[Path]:
        """Expand the rule into regular files under directory, in traversal order."""
        base = Path(self.directory)
        if not base.is_dir():
            raise ConfigurationError(f"fileSet directory does not exist: {base}")
        selected: List[Path] = []
        for root, dirs, names in os.walk(base):
            dirs.sort()
            for name in sorted(names):
                path = Path(root) / name
                if not path.is_file():
                    continue
                rel = path.relative_to(base).as_posix()
                if self.matches(rel):
                    selected.append(path)
        return selected


def select_files(
    artifact: Optional[PathLike] = None,
    file_set: Optional[FileSet] = None,
    file_sets: Sequence[FileSet] = (),
) -> List[Path]:
    """Resolve the explicit artifact and all file-set rules into one ordered list.

    A configured artifact that does not exist is skipped, not an error.
    Paths selected by several rules appear once per rule.
    """
    files: List[Path] = []
    if artifact is not None and str(artifact).strip():
        path = Path(artifact)
        if path.exists():
            files.append(path)
        else:
            logger.debug("Artifact %s not found, skipping", path)
    if file_set is not None:
        files.extend(file_set.files())
    for fs in file_sets:
        files.extend(fs.files())
    return files
