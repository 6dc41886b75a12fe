"""Pytest configuration and fixtures."""

import io
import json
import tarfile
from collections.abc import Mapping
from pathlib import Path

import pytest
from rich.console import Console

from agent_workspace.updater import HTTPResponse, NetworkError

LATEST_RELEASE_URL = "https://api.github.com/repos/hiragram/agent-workspace/releases/latest"


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--run-live",
        action="store_true",
        default=False,
        help="run live tests that talk to the real GitHub API",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "live: mark test as requiring network access to GitHub (deselect with '-m \"not live\"')",
    )


def pytest_collection_modifyitems(config, items):
    """Skip live tests unless --run-live is specified."""
    if config.getoption("--run-live"):
        return

    skip_live = pytest.mark.skip(reason="need --run-live option to run")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


class FakeTransport:
    """HTTPTransport serving canned responses keyed by URL.

    A route may be an HTTPResponse or an exception to raise. Unknown URLs
    get a 404. Every request is recorded in ``requests``.
    """

    def __init__(self, routes: Mapping[str, HTTPResponse | Exception] | None = None):
        self.routes: dict[str, HTTPResponse | Exception] = dict(routes or {})
        self.requests: list[tuple[str, dict[str, str]]] = []

    def get(self, url: str, headers: Mapping[str, str]) -> HTTPResponse:
        self.requests.append((url, dict(headers)))
        route = self.routes.get(url)
        if route is None:
            return HTTPResponse(status=404, body=b'{"message":"Not Found"}')
        if isinstance(route, Exception):
            raise route
        return route

    @property
    def urls(self) -> list[str]:
        return [url for url, _ in self.requests]


def make_archive(members: Mapping[str, bytes], directories: tuple[str, ...] = ()) -> bytes:
    """Build a .tar.gz in memory holding ``members`` in insertion order."""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        for name in directories:
            info = tarfile.TarInfo(name)
            info.type = tarfile.DIRTYPE
            info.mode = 0o755
            tar.addfile(info)
        for name, content in members.items():
            info = tarfile.TarInfo(name)
            info.size = len(content)
            info.mode = 0o755
            tar.addfile(info, io.BytesIO(content))
    return buf.getvalue()


def release_response(tag_name: str, assets: Mapping[str, str] | None = None) -> HTTPResponse:
    """A 200 response carrying release JSON with ``assets`` as name -> URL."""
    body = {
        "tag_name": tag_name,
        "assets": [{"name": name, "browser_download_url": url} for name, url in (assets or {}).items()],
    }
    return HTTPResponse(status=200, body=json.dumps(body).encode())


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def console_output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def console(console_output: io.StringIO) -> Console:
    """Console that records progress lines instead of writing to stderr."""
    return Console(file=console_output, width=200, force_terminal=False, color_system=None)


@pytest.fixture
def installed_binary(tmp_path: Path) -> Path:
    """An existing executable that updates should replace."""
    path = tmp_path / "bin" / "aw"
    path.parent.mkdir()
    path.write_bytes(b"old-binary")
    path.chmod(0o755)
    return path


@pytest.fixture
def network_down() -> NetworkError:
    return NetworkError("GET failed: [Errno 111] Connection refused")
