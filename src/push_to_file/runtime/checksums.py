"""Per-group checksums of the last content pushed by this process."""

from __future__ import annotations

import hashlib
import threading

Checksum = bytes


class ChecksumRegistry:
    """Maps a secret group name to the sha256 of its last written content.

    Lives for the process lifetime only; a fresh process always writes on the
    first push of each group.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._checksums: dict[str, Checksum] = {}

    def get(self, group_name: str) -> Checksum | None:
        with self._lock:
            return self._checksums.get(group_name)

    def set(self, group_name: str, checksum: Checksum) -> None:
        with self._lock:
            self._checksums[group_name] = checksum

    def pop(self, group_name: str) -> Checksum | None:
        with self._lock:
            return self._checksums.pop(group_name, None)

    def clear(self) -> None:
        with self._lock:
            self._checksums.clear()

    def __contains__(self, group_name: object) -> bool:
        with self._lock:
            return group_name in self._checksums

    def __len__(self) -> int:
        with self._lock:
            return len(self._checksums)


prev_file_checksums = ChecksumRegistry()


def file_checksum(content: bytes) -> Checksum:
    return hashlib.sha256(content).digest()


def content_has_changed(group_name: str, checksum: Checksum, registry: ChecksumRegistry | None = None) -> bool:
    registry = prev_file_checksums if registry is None else registry
    prev = registry.get(group_name)
    return prev is None or prev != checksum
