import logging
import os
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from tubely.core.errors import StagingError

logger = logging.getLogger(__name__)

COPY_CHUNK_SIZE = 1024 * 1024  # 1 MB


def remove_quietly(path: str | os.PathLike[str]) -> None:
    """Delete ``path`` if it exists, logging instead of raising on failure."""
    try:
        Path(path).unlink(missing_ok=True)
    except OSError:
        logger.warning("Failed to remove temp file %s", path, exc_info=True)


@dataclass
class StagedFile:
    """A scratch copy of an upload, owned by a single pipeline run."""

    path: Path
    file: BinaryIO
    size: int

    def discard(self) -> None:
        if not self.file.closed:
            self.file.close()
        remove_quietly(self.path)

    def __enter__(self) -> "StagedFile":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.discard()


def stage(
    reader: BinaryIO,
    *,
    directory: str | os.PathLike[str] | None = None,
    expected_size: int | None = None,
    prefix: str = "tubely-upload-",
    suffix: str = ".mp4",
) -> StagedFile:
    """Copy ``reader`` into a new randomly named temp file.

    The copy is fsynced and rewound before it is returned. The caller owns
    the file and must call :meth:`StagedFile.discard` (or use it as a
    context manager) on every exit path. On failure nothing is left behind.
    """
    try:
        fd, name = tempfile.mkstemp(prefix=prefix, suffix=suffix, dir=directory)
    except OSError as exc:
        raise StagingError("Could not create temp file", detail=str(exc)) from exc

    path = Path(name)
    handle = os.fdopen(fd, "w+b")
    try:
        shutil.copyfileobj(reader, handle, COPY_CHUNK_SIZE)
        handle.flush()
        os.fsync(handle.fileno())
        size = handle.tell()
        if expected_size is not None and size != expected_size:
            raise StagingError(
                "Upload was truncated",
                detail=f"expected {expected_size} bytes, got {size}",
            )
        handle.seek(0)
    except StagingError:
        handle.close()
        remove_quietly(path)
        raise
    except OSError as exc:
        handle.close()
        remove_quietly(path)
        raise StagingError(detail=str(exc)) from exc
    except BaseException:
        handle.close()
        remove_quietly(path)
        raise

    logger.debug("Staged %d bytes at %s", size, path)
    return StagedFile(path=path, file=handle, size=size)
