"""Atomic file writer: stage next to the target, rename on close."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from push_to_file.errors import WriteError

logger = logging.getLogger(__name__)


class AtomicWriter:
    """Write sink whose successful close replaces *path* in one rename.

    Bytes accumulate in a staging file in the target's directory. A failed
    write, an abort, or leaving a ``with`` block through an exception removes
    the staging file and leaves the target as it was. Closing a writer that
    never received a ``write`` call also leaves the target alone; write
    ``b""`` to commit an empty file.
    """

    def __init__(self, path: Path, permissions: int) -> None:
        self.path = Path(path)
        self.permissions = permissions
        fd, tmp = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent)
        self._fh = os.fdopen(fd, "wb")
        self._tmp_path = Path(tmp)
        self._failed = False
        self._finished = False
        self._written = False

    @property
    def staging_path(self) -> Path:
        return self._tmp_path

    @property
    def closed(self) -> bool:
        return self._finished

    def write(self, data: bytes) -> int:
        if self._finished or self._failed:
            raise WriteError(f"write to closed or failed atomic writer for {str(self.path)!r}", path=self.path)
        try:
            n = self._fh.write(data)
        except OSError as exc:
            self._failed = True
            self._discard()
            raise WriteError(f"unable to write staging file for {str(self.path)!r}: {exc}", path=self.path) from exc
        self._written = True
        return len(data) if n is None else n

    def close(self) -> None:
        if self._finished and not self._failed:
            return
        if self._failed:
            self._discard()
            raise WriteError(f"atomic write to {str(self.path)!r} discarded after a failed write", path=self.path)
        if not self._written:
            # nothing to commit; the target keeps its content and inode
            self._discard()
            return
        try:
            self._fh.flush()
            os.fsync(self._fh.fileno())
            os.fchmod(self._fh.fileno(), self.permissions)
            self._fh.close()
            os.replace(self._tmp_path, self.path)
        except OSError as exc:
            self._failed = True
            self._discard()
            raise WriteError(f"unable to commit atomic write to {str(self.path)!r}: {exc}", path=self.path) from exc
        self._finished = True

    def abort(self) -> None:
        if self._finished:
            return
        self._failed = True
        self._discard()

    def _discard(self) -> None:
        self._finished = True
        try:
            self._fh.close()
        except OSError:
            logger.debug("Closing staging file %s failed", self._tmp_path, exc_info=True)
        try:
            self._tmp_path.unlink(missing_ok=True)
        except OSError:
            logger.warning("Failed to remove staging file %s", self._tmp_path, exc_info=True)

    def __enter__(self) -> "AtomicWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.abort()
            return
        self.close()
