"""Pull the aw executable out of a downloaded release archive.

Release archives are gzip-compressed tarballs. Everything happens in
memory; nothing is written to disk until the replace step.
"""

import gzip
import io
import logging
import tarfile
import zlib
from dataclasses import dataclass
from pathlib import PurePosixPath

from agent_workspace.updater.config import BINARY_NAME
from agent_workspace.updater.errors import BinaryNotFoundError, GzipError, TarError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BinaryPayload:
    """An executable read out of an archive."""

    name: str  # Member name inside the archive, e.g. "aw_linux_amd64/aw"
    content: bytes


def _decompress(archive_data: bytes) -> bytes:
    if not archive_data:
        raise GzipError("opening gzip: archive is empty")
    try:
        return gzip.decompress(archive_data)
    except (OSError, EOFError, zlib.error) as e:
        raise GzipError(f"opening gzip: {e}") from e


def extract_binary(
    archive_data: bytes,
    binary_name: str = BINARY_NAME,
    max_size: int | None = None,
) -> BinaryPayload:
    """Return the first regular file in the archive named ``binary_name``.

    Members are matched on their base name, so the binary may sit at any
    depth. ``max_size`` bounds how large a matching member may be; the
    default keeps whatever the archive holds.

    Raises:
        GzipError: If the data is not valid gzip.
        TarError: If the decompressed data is not a valid tar stream, or the
            binary exceeds ``max_size``.
        BinaryNotFoundError: If no member matches.
    """
    tar_data = _decompress(archive_data)
    if not tar_data:
        # An empty stream ends before any member, same as a tar with no match
        raise BinaryNotFoundError(binary_name)

    try:
        with tarfile.open(fileobj=io.BytesIO(tar_data), mode="r:") as tar:
            for member in tar:
                if PurePosixPath(member.name).name != binary_name or not member.isfile():
                    continue

                if max_size is not None and member.size > max_size:
                    raise TarError(
                        f"binary {member.name!r} is {member.size} bytes, larger than the {max_size} byte limit"
                    )

                extracted = tar.extractfile(member)
                if extracted is None:
                    continue
                with extracted:
                    content = extracted.read()

                logger.debug("Extracted %s (%d bytes)", member.name, len(content))
                return BinaryPayload(name=member.name, content=content)
    except tarfile.TarError as e:
        raise TarError(f"reading tar: {e}") from e

    raise BinaryNotFoundError(binary_name)
