"""Sink that discards everything written to it."""

from __future__ import annotations


class NullSink:
    """Accepts and drops bytes. Used for dry runs and template validation.

    The write gate recognises any NullSink and neither reads nor updates the
    checksum registry for it.
    """

    def __init__(self) -> None:
        self.bytes_written = 0
        self.writes = 0

    def write(self, data: bytes) -> int:
        self.writes += 1
        self.bytes_written += len(data)
        return len(data)

    def close(self) -> None:
        pass


DISCARD = NullSink()
