"""Flat-directory upload store with scratch-then-rename commits."""

import logging
import os
import secrets
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

MESH_SUFFIX = ".stl"
SCRATCH_PREFIX = ".upload-"
SCRATCH_SUFFIX = ".part"
SCRATCH_DIRNAME = ".scratch"
TOKEN_BYTES = 12  # 96-bit identifiers


@dataclass(frozen=True)
class StoredFile:
    file_id: str
    filename: str
    path: Path


class UploadStore:
    """Stored uploads live in ``directory``; scratch copies live beside it.

    The scratch directory defaults to a hidden sibling of ``directory`` so it
    is never under the public static mount but stays on the same filesystem.
    """

    def __init__(self, directory: str | Path, scratch_dir: str | Path | None = None):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        if scratch_dir is None:
            scratch_dir = self.directory.parent / SCRATCH_DIRNAME
        self.scratch_dir = Path(scratch_dir)
        self.scratch_dir.mkdir(parents=True, exist_ok=True)

    def stage(self, data: bytes) -> Path:
        """Write upload bytes to a scratch file outside the served directory."""
        fd, name = tempfile.mkstemp(
            prefix=SCRATCH_PREFIX, suffix=SCRATCH_SUFFIX, dir=self.scratch_dir
        )
        scratch = Path(name)
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
        except BaseException:
            scratch.unlink(missing_ok=True)
            raise
        return scratch

    def commit(self, scratch: Path) -> StoredFile:
        """Move a scratch file to its final random name.

        ``os.replace`` within one filesystem is atomic, so the final file is
        either absent or complete.
        """
        file_id = secrets.token_hex(TOKEN_BYTES)
        filename = f"{file_id}{MESH_SUFFIX}"
        final_path = self.directory / filename
        os.replace(scratch, final_path)
        logger.info(f"Stored upload as {filename}")
        return StoredFile(file_id=file_id, filename=filename, path=final_path)

    def discard(self, scratch: Path) -> None:
        scratch.unlink(missing_ok=True)
        logger.debug(f"Discarded scratch file {scratch.name}")

    @contextmanager
    def staged(self, data: bytes):
        """Yield a scratch path that is removed on exit unless committed."""
        scratch = self.stage(data)
        try:
            yield scratch
        finally:
            if scratch.exists():
                self.discard(scratch)

    @staticmethod
    def public_url(stored: StoredFile, host: str) -> str:
        return f"https://{host}/uploads/{stored.filename}"
