"""Errors raised by the self-update steps.

Every step of an update raises a subclass of UpdateError so the launcher
can turn it into a failed result tagged with the step that produced it.
"""


class UpdateError(Exception):
    """Base class for all self-update failures."""

    pass


class InvalidVersionError(UpdateError, ValueError):
    """Raised when a version string is not X.Y.Z (optionally v-prefixed)."""

    pass


class NetworkError(UpdateError):
    """Raised when the HTTP transport fails to complete a request."""

    pass


class HTTPStatusError(UpdateError):
    """Raised when GitHub answers with a non-2xx status."""

    def __init__(self, status: int, body: str = "", url: str | None = None):
        self.status = status
        self.body = body
        self.url = url
        super().__init__(f"GitHub API returned status {status}: {body}" if body else f"unexpected status {status}")


class DecodeError(UpdateError):
    """Raised when release metadata is not the JSON we expect."""

    pass


class AssetNotFoundError(UpdateError):
    """Raised when a release has no archive for the requested platform."""

    def __init__(self, os_name: str, arch: str):
        self.os_name = os_name
        self.arch = arch
        super().__init__(f"no release asset found for {os_name}/{arch}")


class ArchiveError(UpdateError):
    """Base class for problems with the downloaded archive."""

    pass


class GzipError(ArchiveError):
    """Raised when the archive is not valid gzip data."""

    pass


class TarError(ArchiveError):
    """Raised when the decompressed archive is not a readable tar stream."""

    pass


class BinaryNotFoundError(ArchiveError):
    """Raised when the archive does not contain the executable."""

    def __init__(self, binary_name: str):
        self.binary_name = binary_name
        super().__init__(f"binary {binary_name!r} not found in archive")


class ReplaceError(UpdateError, IOError):
    """Raised when the new executable cannot be written or swapped in."""

    pass


class ExecutablePathError(UpdateError, OSError):
    """Raised when the running executable's path cannot be determined."""

    pass
