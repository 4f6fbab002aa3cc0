"""Write sink interface for push-to-file."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Sink(Protocol):
    def write(self, data: bytes) -> int: ...
    def close(self) -> None: ...
