"""Self-updater for aw.

This module lets aw replace itself with the latest GitHub release. It can:
- Check whether a newer release exists
- Download the archive for the current platform
- Extract the aw executable in memory
- Atomically replace the installed executable
"""

from agent_workspace.updater.archive import BinaryPayload, extract_binary
from agent_workspace.updater.config import UpdaterSettings
from agent_workspace.updater.errors import (
    ArchiveError,
    AssetNotFoundError,
    BinaryNotFoundError,
    DecodeError,
    ExecutablePathError,
    GzipError,
    HTTPStatusError,
    InvalidVersionError,
    NetworkError,
    ReplaceError,
    TarError,
    UpdateError,
)
from agent_workspace.updater.github import (
    HTTPResponse,
    HTTPTransport,
    ReleaseAsset,
    ReleaseInfo,
    UrllibTransport,
    asset_name,
    current_platform,
    download_asset,
    fetch_latest_release,
    find_asset_url,
)
from agent_workspace.updater.launcher import (
    SelfUpdateResult,
    Updater,
    UpdatePlan,
    UpdateStatus,
    UpdateStep,
    UpdateStepError,
    check_for_updates,
    default_updater,
    run_update,
)
from agent_workspace.updater.replace import replace_binary, resolve_executable_path
from agent_workspace.updater.semver import SemanticVersion, is_newer, parse_version

__all__ = [
    "SelfUpdateResult",
    "UpdateStatus",
    "UpdateStep",
    "UpdatePlan",
    "Updater",
    "UpdaterSettings",
    "run_update",
    "check_for_updates",
    "default_updater",
    "SemanticVersion",
    "parse_version",
    "is_newer",
    "HTTPResponse",
    "HTTPTransport",
    "UrllibTransport",
    "ReleaseAsset",
    "ReleaseInfo",
    "asset_name",
    "current_platform",
    "fetch_latest_release",
    "find_asset_url",
    "download_asset",
    "BinaryPayload",
    "extract_binary",
    "resolve_executable_path",
    "replace_binary",
    "UpdateError",
    "UpdateStepError",
    "InvalidVersionError",
    "NetworkError",
    "HTTPStatusError",
    "DecodeError",
    "AssetNotFoundError",
    "ArchiveError",
    "GzipError",
    "TarError",
    "BinaryNotFoundError",
    "ReplaceError",
    "ExecutablePathError",
]
