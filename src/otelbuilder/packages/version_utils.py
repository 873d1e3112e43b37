"""Go module version parsing and normalization.

Accepts tagged semantic versions ("v1.2.3", "1.2.3", "v1.2.3-rc.1",
"v2.0.0+incompatible") and pseudo-versions
("v0.0.0-20210101120000-abcdef123456").
"""

import re
from typing import Optional

_SEMVER_RE = re.compile(
    r"^v(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)

# Same shape the go command uses to recognize pseudo-versions
_PSEUDO_RE = re.compile(
    r"^v[0-9]+\.(?:0\.0-|\d+\.\d+-(?:[^+]*\.)?0\.)\d{14}-[A-Za-z0-9]+"
    r"(?:\+[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?$"
)


class VersionError(ValueError):
    """Raised when a version string cannot be normalized."""

    pass


def normalize_version(version: Optional[str]) -> str:
    """Normalize a version string to the canonical "vX.Y.Z..." form.

    Args:
        version: Raw version, with or without the leading "v"

    Returns:
        Canonical version string

    Raises:
        VersionError: If the version is empty or malformed

    Example:
        normalize_version("1.2.3")  # -> "v1.2.3"
        normalize_version("v0.0.0-20210101120000-abcdef123456")  # unchanged
    """
    if version is None or not version.strip():
        raise VersionError("version must not be empty")

    candidate = version.strip()
    if candidate[0].isdigit():
        candidate = "v" + candidate

    match = _SEMVER_RE.match(candidate)
    if not match:
        raise VersionError(f"malformed version '{version}'")
    if match.group(5) == "incompatible" and int(match.group(1)) < 2:
        raise VersionError(
            f"version '{version}': +incompatible requires major version 2 or later"
        )
    return candidate


def is_pseudo_version(version: str) -> bool:
    """Check whether a normalized version is a Go pseudo-version."""
    return bool(_PSEUDO_RE.match(version))
