"""Secure file I/O primitives with explicit permission control."""

from __future__ import annotations

import os
from pathlib import Path

from push_to_file.errors import AtomicWriterInitError, DirectoryCreationError, FileOpenError
from push_to_file.sinks.atomic import AtomicWriter


def open_file_as_sink(path: Path | str, permissions: int) -> AtomicWriter:
    """Open *path* for an atomic write with the given permissions.

    Directory and permission problems surface here rather than at close
    time. The probe open creates an empty target if none existed yet.
    """
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise DirectoryCreationError(
            f"unable to mkdir when opening file to write at {str(path)!r}: {exc}", path=path
        ) from exc

    try:
        fd = os.open(str(path), os.O_WRONLY | os.O_CREAT, permissions)
    except OSError as exc:
        raise FileOpenError(f"unable to open file to write at {str(path)!r}: {exc}", path=path) from exc
    os.close(fd)

    try:
        return AtomicWriter(path, permissions)
    except OSError as exc:
        raise AtomicWriterInitError(f"unable to create atomic writer for {str(path)!r}: {exc}", path=path) from exc


def atomic_write(path: Path, data: bytes, mode: int = 0o600) -> None:
    """Write data atomically with explicit file permissions."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with AtomicWriter(path, mode) as writer:
        writer.write(data)
