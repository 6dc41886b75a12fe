"""Three-part version parsing and ordering for release tags."""

from dataclasses import dataclass

from agent_workspace.updater.errors import InvalidVersionError

_SEGMENTS = ("major", "minor", "patch")


@dataclass(frozen=True, order=True)
class SemanticVersion:
    """A major.minor.patch version. Ordering compares fields left to right."""

    major: int
    minor: int
    patch: int

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


def parse_version(value: str) -> SemanticVersion:
    """Parse ``X.Y.Z`` or ``vX.Y.Z`` into a SemanticVersion.

    Raises:
        InvalidVersionError: If the string is not exactly three dot-separated
            non-negative integers.
    """
    stripped = value.removeprefix("v")
    parts = stripped.split(".")
    if len(parts) != 3:
        raise InvalidVersionError(f"invalid version format {stripped!r}: expected X.Y.Z")

    numbers: list[int] = []
    for segment, part in zip(_SEGMENTS, parts, strict=True):
        # isdigit() alone accepts superscripts and non-ASCII digits
        if not (part.isascii() and part.isdigit()):
            raise InvalidVersionError(f"invalid {segment} version {part!r}")
        numbers.append(int(part))

    return SemanticVersion(*numbers)


def is_newer(latest: str, current: str) -> bool:
    """Return True if ``latest`` is strictly newer than ``current``."""
    try:
        latest_version = parse_version(latest)
    except InvalidVersionError as e:
        raise InvalidVersionError(f"parsing latest version: {e}") from e
    try:
        current_version = parse_version(current)
    except InvalidVersionError as e:
        raise InvalidVersionError(f"parsing current version: {e}") from e

    return latest_version > current_version
