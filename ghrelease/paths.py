"""Path utilities for finding the project root and its ghrelease config file."""
from __future__ import annotations

from pathlib import Path
from typing import Optional


PROJECT_CONFIG_FILENAME = ".ghrelease.yaml"
GIT_DIRNAME = ".git"


def find_project_root(start_path: Optional[Path] = None) -> Optional[Path]:
    """Find the project root by walking up the directory tree.

    The root is the nearest directory holding a .git folder (or a .git file,
    as in worktrees and submodules).

    Args:
        start_path: Starting directory (defaults to current working directory)

    Returns:
        Path to project root, or None if not inside a git checkout

    Example:
        >>> # From REPO/src/foo/bar, finds REPO
        >>> root = find_project_root()
        >>> print(root)
        /path/to/REPO
    """
    if start_path is None:
        start_path = Path.cwd()

    current = start_path.resolve()

    for parent in [current] + list(current.parents):
        if (parent / GIT_DIRNAME).exists():
            return parent

    return None


def get_project_config_path(start_path: Optional[Path] = None) -> Optional[Path]:
    """Get the project config file path.

    Looks in the start directory first, then at the project root.

    Args:
        start_path: Starting directory (defaults to current working directory)

    Returns:
        Path to an existing .ghrelease.yaml, or None if there is none
    """
    start = (start_path or Path.cwd()).resolve()
    candidate = start / PROJECT_CONFIG_FILENAME
    if candidate.is_file():
        return candidate

    root = find_project_root(start)
    if root:
        candidate = root / PROJECT_CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None
