"""Repository identifier helpers.

Turns source-control URLs such as ``scm:git:https://github.com/owner/repo.git``
or ``git@github.com:owner/repo`` into the ``owner/repo`` form used by the API.
"""
from __future__ import annotations

import re
import subprocess
from pathlib import Path
from typing import Optional, Union


REPOSITORY_RE = re.compile(
    r"^(scm:git[:|])?"              # SCM prefix
    r"(https?://[^/]+/|git@[^:]+:)"  # HTTP(S) or SSH host prefix
    r"([^/]+/[^/]*?)"                # owner/repo
    r"(\.git)?$",                    # optional .git suffix
    re.IGNORECASE,
)


def compute_repository_id(value: str) -> str:
    """Return ``owner/repo`` extracted from value, or value unchanged if it doesn't match."""
    m = REPOSITORY_RE.match(value)
    if not m:
        return value
    return m.group(3)


def git_remote_url(cwd: Optional[Union[str, Path]] = None, remote: str = "origin") -> Optional[str]:
    """Read the URL of a git remote, or None if git or the remote is unavailable."""
    try:
        out = subprocess.check_output(
            ["git", "remote", "get-url", remote],
            cwd=str(cwd) if cwd else None,
            text=True,
            stderr=subprocess.DEVNULL,
        ).strip()
    except (OSError, subprocess.CalledProcessError):
        return None
    return out or None
