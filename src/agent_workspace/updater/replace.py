"""Swap a new executable into place without ever exposing a partial file.

The new content is written to a sibling temporary file and renamed over the
target. Rename within one directory is atomic, so readers see either the
old executable or the new one. A process already running the old image
keeps its open inode.
"""

import contextlib
import logging
import os
import shutil
import sys
import tempfile
from pathlib import Path

from agent_workspace.updater.config import BINARY_NAME
from agent_workspace.updater.errors import ExecutablePathError, ReplaceError

logger = logging.getLogger(__name__)

EXECUTABLE_MODE = 0o755

# Running as `python -m agent_workspace.cli` puts a module path in argv[0]
_PYTHON_SOURCE_SUFFIXES = (".py", ".pyw", ".pyc")


def _running_executable() -> Path:
    # Frozen builds (PyInstaller and friends) run as sys.executable; an
    # installed console script runs as argv[0]
    if getattr(sys, "frozen", False):
        return Path(sys.executable)

    argv0 = sys.argv[0] if sys.argv else ""
    if not argv0:
        raise ExecutablePathError("cannot determine the running executable: sys.argv is empty")
    if os.sep not in argv0 and (os.altsep is None or os.altsep not in argv0):
        found = shutil.which(argv0)
        if found:
            return Path(found)
    return Path(argv0)


def resolve_executable_path(override: Path | str | None = None) -> Path:
    """Return the file that an update should replace.

    An override is returned as given. Otherwise the running executable is
    resolved through every symlink so the real file is replaced rather than
    the link pointing at it.

    Raises:
        ExecutablePathError: If the path cannot be found or resolved, or
            is not an executable that can be replaced.
    """
    if override:
        return Path(override)

    exe = _running_executable()
    try:
        resolved = exe.resolve(strict=True)
    except (OSError, RuntimeError) as e:
        raise ExecutablePathError(f"resolving {exe}: {e}") from e

    if resolved.suffix.lower() in _PYTHON_SOURCE_SUFFIXES:
        raise ExecutablePathError(
            f"{resolved} is a Python module, not an installed aw executable; run the aw command to update"
        )
    if os.name == "posix" and not os.access(resolved, os.X_OK):
        raise ExecutablePathError(f"{resolved} is not executable")

    logger.debug("Running executable %s resolves to %s", exe, resolved)
    return resolved


def replace_binary(target_path: Path | str, content: bytes, binary_name: str = BINARY_NAME) -> None:
    """Atomically replace ``target_path`` with ``content``.

    The target is only ever touched by the final rename. Any failure before
    that leaves the target as it was and removes the temporary file.

    Raises:
        ReplaceError: If writing, chmod or the rename fails.
    """
    target = Path(target_path)

    try:
        fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f"{binary_name}.update.")
    except OSError as e:
        raise ReplaceError(f"creating temp file: {e}") from e
    tmp_path = Path(tmp_name)

    try:
        try:
            with os.fdopen(fd, "wb") as tmp:
                tmp.write(content)
                tmp.flush()
                os.fsync(tmp.fileno())
        except OSError as e:
            raise ReplaceError(f"writing temp file: {e}") from e

        try:
            tmp_path.chmod(EXECUTABLE_MODE)
        except OSError as e:
            raise ReplaceError(f"setting permissions: {e}") from e

        try:
            os.replace(tmp_path, target)
        except OSError as e:
            raise ReplaceError(f"renaming {tmp_path.name} to {target}: {e}") from e
    except BaseException:
        with contextlib.suppress(OSError):
            tmp_path.unlink()
        raise

    logger.debug("Replaced %s (%d bytes)", target, len(content))
