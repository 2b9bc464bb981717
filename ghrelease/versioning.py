from __future__ import annotations

from typing import Tuple


SNAPSHOT_SUFFIX = "-SNAPSHOT"
PRERELEASE_MARKERS: Tuple[str, ...] = ("-alpha", "-beta", "-RC", ".RC", ".M", ".BUILD_SNAPSHOT")


def guess_prerelease(version: str) -> bool:
    """Guess whether a version string denotes a prerelease.

    - Versions ending with ``-SNAPSHOT`` (exact case) are prereleases.
    - Versions containing any of PRERELEASE_MARKERS, ignoring case, are prereleases.
    - Plain string containment only; no semver parsing.
    """
    if version.endswith(SNAPSHOT_SUFFIX):
        return True
    lowered = version.lower()
    return any(marker.lower() in lowered for marker in PRERELEASE_MARKERS)
