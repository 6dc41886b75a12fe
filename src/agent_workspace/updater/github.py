"""GitHub release lookup for the self-updater.

Network access goes through an ``HTTPTransport`` so the launcher can be
driven against canned responses in tests. ``UrllibTransport`` is the real
implementation and owns the request timeout.
"""

import http.client
import logging
import platform
import urllib.error
import urllib.request
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from agent_workspace.updater.config import BINARY_NAME, DEFAULT_TIMEOUT, UpdaterSettings
from agent_workspace.updater.errors import (
    AssetNotFoundError,
    DecodeError,
    HTTPStatusError,
    NetworkError,
)

logger = logging.getLogger(__name__)

# Longest slice of an error body carried into HTTPStatusError
_MAX_ERROR_BODY = 500


@dataclass
class HTTPResponse:
    """Status and fully-read body of a completed request."""

    status: int
    body: bytes = b""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


class HTTPTransport(Protocol):
    """Anything that can perform a blocking GET.

    Implementations return non-2xx responses rather than raising, and raise
    NetworkError when no response was received at all.
    """

    def get(self, url: str, headers: Mapping[str, str]) -> HTTPResponse: ...


class UrllibTransport:
    """HTTPTransport backed by urllib.request."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT):
        self.timeout = timeout

    def get(self, url: str, headers: Mapping[str, str]) -> HTTPResponse:
        try:
            req = urllib.request.Request(url, headers=dict(headers), method="GET")
            with urllib.request.urlopen(req, timeout=self.timeout) as response:
                return HTTPResponse(status=response.status, body=response.read())
        except urllib.error.HTTPError as e:
            # urllib raises for 4xx/5xx; callers decide what a status means
            try:
                body = e.read()
            except (OSError, http.client.HTTPException):
                body = b""
            return HTTPResponse(status=e.code, body=body)
        except urllib.error.URLError as e:
            raise NetworkError(f"GET {url} failed: {e.reason}") from e
        except (OSError, http.client.HTTPException) as e:
            raise NetworkError(f"GET {url} failed: {type(e).__name__}: {e}") from e
        except ValueError as e:
            # Request() rejects URLs it cannot route, e.g. an empty asset URL
            raise NetworkError(f"GET {url!r} failed: {e}") from e


class ReleaseAsset(BaseModel):
    """A downloadable file attached to a release."""

    model_config = ConfigDict(frozen=True)

    name: str
    browser_download_url: str


class ReleaseInfo(BaseModel):
    """The fields of a GitHub release the updater relies on."""

    model_config = ConfigDict(frozen=True)

    tag_name: str
    assets: list[ReleaseAsset] = Field(default_factory=list)

    @property
    def version(self) -> str:
        """Tag with a single leading "v" removed."""
        return self.tag_name.removeprefix("v")


def _request_headers(settings: UpdaterSettings, accept: str) -> dict[str, str]:
    return {"Accept": accept, "User-Agent": settings.user_agent}


def fetch_latest_release(
    transport: HTTPTransport,
    settings: UpdaterSettings | None = None,
) -> ReleaseInfo:
    """Fetch metadata for the latest published release.

    Raises:
        NetworkError: If the transport could not complete the request.
        HTTPStatusError: If GitHub answered with a non-2xx status.
        DecodeError: If the body is not a release JSON document.
    """
    settings = settings or UpdaterSettings()
    url = settings.latest_release_url
    logger.debug("Fetching latest release from %s", url)

    response = transport.get(url, _request_headers(settings, "application/vnd.github+json"))
    if not response.ok:
        raise HTTPStatusError(response.status, response.text().strip()[:_MAX_ERROR_BODY], url=url)

    try:
        release = ReleaseInfo.model_validate_json(response.body)
    except ValidationError as e:
        raise DecodeError(f"parsing release info: {e}") from e

    logger.debug("Latest release is %s with %d assets", release.tag_name, len(release.assets))
    return release


def asset_name(os_name: str, arch: str, binary_name: str = BINARY_NAME) -> str:
    """Archive name published for a platform, e.g. ``aw_linux_amd64.tar.gz``."""
    return f"{binary_name}_{os_name}_{arch}.tar.gz"


def find_asset_url(
    release: ReleaseInfo,
    os_name: str,
    arch: str,
    binary_name: str = BINARY_NAME,
) -> str:
    """Return the download URL of the archive for ``os_name``/``arch``.

    Names are compared exactly; the first matching asset wins.

    Raises:
        AssetNotFoundError: If no asset carries the expected name.
    """
    expected = asset_name(os_name, arch, binary_name)
    for asset in release.assets:
        if asset.name == expected:
            return asset.browser_download_url
    raise AssetNotFoundError(os_name, arch)


def download_asset(
    transport: HTTPTransport,
    url: str,
    settings: UpdaterSettings | None = None,
) -> bytes:
    """Download a release asset into memory.

    Raises:
        NetworkError: If the transport could not complete the request.
        HTTPStatusError: If the server answered with a non-2xx status.
    """
    settings = settings or UpdaterSettings()
    logger.debug("Downloading %s", url)

    response = transport.get(url, _request_headers(settings, "application/octet-stream"))
    if not response.ok:
        raise HTTPStatusError(response.status, url=url)

    logger.debug("Downloaded %d bytes", len(response.body))
    return response.body


_OS_NAMES = {
    "linux": "linux",
    "darwin": "darwin",
    "windows": "windows",
}

_ARCH_NAMES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "i386": "386",
    "i686": "386",
    "x86": "386",
}


def current_platform() -> tuple[str, str]:
    """Return the (os, arch) pair used in release asset names.

    Unknown systems and machines pass through lower-cased, so they simply
    fail to match any asset.
    """
    system = platform.system().lower()
    machine = platform.machine().lower()

    os_name = _OS_NAMES.get(system, system)
    if machine in _ARCH_NAMES:
        arch = _ARCH_NAMES[machine]
    elif machine.startswith("arm"):
        arch = "arm"
    else:
        arch = machine

    return os_name, arch
