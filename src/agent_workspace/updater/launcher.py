"""Self-update workflow for aw.

The update flow is:
1. Fetch the latest GitHub release
2. Compare its version with the running version (stop here if up to date)
3. Pick the archive for this OS/architecture
4. Download the archive into memory
5. Extract the aw executable from it
6. Resolve the real path of the installed executable
7. Atomically replace that file

Nothing on disk changes before step 7, so a failure anywhere earlier leaves
the installed executable untouched and needs no cleanup.
"""

import contextlib
import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from rich.console import Console
from rich.markup import escape

from agent_workspace.updater.archive import extract_binary
from agent_workspace.updater.config import UpdaterSettings
from agent_workspace.updater.errors import UpdateError
from agent_workspace.updater.github import (
    HTTPTransport,
    ReleaseInfo,
    UrllibTransport,
    current_platform,
    download_asset,
    fetch_latest_release,
    find_asset_url,
)
from agent_workspace.updater.replace import replace_binary, resolve_executable_path
from agent_workspace.updater.semver import is_newer

logger = logging.getLogger(__name__)


class UpdateStatus(str, Enum):
    """Terminal outcome of an update or check."""

    UP_TO_DATE = "up_to_date"
    UPDATE_AVAILABLE = "update_available"
    SUCCESS = "success"
    FAILED = "failed"


class UpdateStep(str, Enum):
    """Steps of the update workflow, in order."""

    CHECKING_RELEASE = "checking_release"
    COMPARING_VERSIONS = "comparing_versions"
    RESOLVING_ASSET = "resolving_asset"
    DOWNLOADING = "downloading"
    EXTRACTING = "extracting"
    RESOLVING_PATH = "resolving_path"
    REPLACING = "replacing"

    @property
    def label(self) -> str:
        return _STEP_LABELS[self]


_STEP_LABELS = {
    UpdateStep.CHECKING_RELEASE: "checking latest release",
    UpdateStep.COMPARING_VERSIONS: "comparing versions",
    UpdateStep.RESOLVING_ASSET: "finding release asset",
    UpdateStep.DOWNLOADING: "downloading release",
    UpdateStep.EXTRACTING: "extracting binary",
    UpdateStep.RESOLVING_PATH: "determining executable path",
    UpdateStep.REPLACING: "replacing binary",
}


class UpdateStepError(UpdateError):
    """An UpdateError tagged with the step that raised it."""

    def __init__(self, step: UpdateStep, cause: UpdateError):
        self.step = step
        self.cause = cause
        super().__init__(f"{step.label}: {cause}")


@contextlib.contextmanager
def _step(step: UpdateStep) -> Iterator[None]:
    logger.debug("Update step: %s", step.value)
    try:
        yield
    except UpdateError as e:
        raise UpdateStepError(step, e) from e


@dataclass(frozen=True)
class UpdatePlan:
    """Whether the latest release should replace the running version."""

    current_version: str
    latest_version: str
    update_needed: bool


@dataclass
class SelfUpdateResult:
    """Result of a self-update operation."""

    status: UpdateStatus
    current_version: str
    latest_version: str | None = None
    message: str = ""
    failed_step: UpdateStep | None = None
    error: UpdateError | None = None
    target_path: Path | None = None

    @property
    def ok(self) -> bool:
        return self.status is not UpdateStatus.FAILED


def _stderr_console() -> Console:
    return Console(stderr=True)


@dataclass
class Updater:
    """Runs the update workflow against injectable collaborators.

    Tests supply a fake transport, a fixed platform and ``exec_path`` so no
    real network or installed executable is involved.
    """

    current_version: str
    transport: HTTPTransport
    os_name: str
    arch: str
    console: Console = field(default_factory=_stderr_console)
    # Overrides executable path detection
    exec_path: Path | None = None
    settings: UpdaterSettings = field(default_factory=UpdaterSettings)

    @property
    def binary_name(self) -> str:
        return self.settings.binary_name

    def plan(self) -> tuple[ReleaseInfo, UpdatePlan]:
        """Fetch the latest release and decide whether to update.

        Raises:
            UpdateStepError: If the release cannot be fetched or either
                version cannot be parsed.
        """
        with _step(UpdateStep.CHECKING_RELEASE):
            release = fetch_latest_release(self.transport, self.settings)

        with _step(UpdateStep.COMPARING_VERSIONS):
            update_needed = is_newer(release.version, self.current_version)

        return release, UpdatePlan(
            current_version=self.current_version,
            latest_version=release.version,
            update_needed=update_needed,
        )

    def check(self) -> SelfUpdateResult:
        """Report whether an update is available without installing it."""
        self.console.print("Checking for updates...")
        try:
            _, plan = self.plan()
        except UpdateStepError as e:
            return self._failed(e)

        if not plan.update_needed:
            return self._up_to_date(plan)

        return SelfUpdateResult(
            status=UpdateStatus.UPDATE_AVAILABLE,
            current_version=self.current_version,
            latest_version=plan.latest_version,
            message=f"Update available: {self.current_version} → {plan.latest_version}",
        )

    def execute(self) -> SelfUpdateResult:
        """Run the whole update workflow.

        Every UpdateError is turned into a FAILED result naming the step it
        came from. An up-to-date installation is a success, not a failure.
        """
        latest_version = None
        try:
            self.console.print("Checking for updates...")
            release, plan = self.plan()
            latest_version = plan.latest_version

            if not plan.update_needed:
                self.console.print(f"{self.binary_name} {self.current_version} is already the latest version.")
                return self._up_to_date(plan)

            self.console.print(f"Updating {self.binary_name}: {self.current_version} → {latest_version}")

            with _step(UpdateStep.RESOLVING_ASSET):
                asset_url = find_asset_url(release, self.os_name, self.arch, self.binary_name)

            self.console.print(f"Downloading for {self.os_name}/{self.arch}...")
            with _step(UpdateStep.DOWNLOADING):
                archive_data = download_asset(self.transport, asset_url, self.settings)

            self.console.print(f"Extracting {self.binary_name}...")
            with _step(UpdateStep.EXTRACTING):
                payload = extract_binary(
                    archive_data,
                    binary_name=self.binary_name,
                    max_size=self.settings.max_binary_size,
                )

            with _step(UpdateStep.RESOLVING_PATH):
                target_path = resolve_executable_path(self.exec_path)

            self.console.print(f"Installing to {escape(str(target_path))}...")
            with _step(UpdateStep.REPLACING):
                replace_binary(target_path, payload.content, self.binary_name)
        except UpdateStepError as e:
            return self._failed(e, latest_version)

        self.console.print(f"[green]Updated successfully![/green] Run '{self.binary_name} --version' to verify.")
        logger.info("Updated %s from %s to %s", target_path, self.current_version, latest_version)
        return SelfUpdateResult(
            status=UpdateStatus.SUCCESS,
            current_version=self.current_version,
            latest_version=latest_version,
            message=f"Updated {self.binary_name}: {self.current_version} → {latest_version}",
            target_path=target_path,
        )

    def _up_to_date(self, plan: UpdatePlan) -> SelfUpdateResult:
        return SelfUpdateResult(
            status=UpdateStatus.UP_TO_DATE,
            current_version=self.current_version,
            latest_version=plan.latest_version,
            message=f"{self.binary_name} {self.current_version} is already the latest version.",
        )

    def _failed(self, e: UpdateStepError, latest_version: str | None = None) -> SelfUpdateResult:
        logger.debug("Update failed while %s: %s: %s", e.step.label, type(e.cause).__name__, e.cause)
        return SelfUpdateResult(
            status=UpdateStatus.FAILED,
            current_version=self.current_version,
            latest_version=latest_version,
            message=str(e),
            failed_step=e.step,
            error=e.cause,
        )


def default_updater(current_version: str, settings: UpdaterSettings | None = None) -> Updater:
    """Build an Updater for the real network, platform and executable."""
    settings = settings or UpdaterSettings.from_env()
    os_name, arch = current_platform()
    return Updater(
        current_version=current_version,
        transport=UrllibTransport(timeout=settings.timeout),
        os_name=os_name,
        arch=arch,
        settings=settings,
    )


def run_update(current_version: str, settings: UpdaterSettings | None = None) -> SelfUpdateResult:
    """Update the installed aw to the latest release."""
    return default_updater(current_version, settings).execute()


def check_for_updates(current_version: str, settings: UpdaterSettings | None = None) -> SelfUpdateResult:
    """Check GitHub for a release newer than ``current_version``."""
    return default_updater(current_version, settings).check()
