"""Secret and secret group value types."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from push_to_file.errors import ConfigError

DEFAULT_FILE_PERMISSIONS = 0o640


@dataclass(frozen=True)
class Secret:
    alias: str
    value: str

    def __repr__(self) -> str:
        return f"Secret(alias={self.alias!r}, value='***')"


@dataclass(frozen=True)
class SecretSpec:
    """Where a secret comes from (``ref``) and what templates call it (``alias``)."""

    alias: str
    ref: str

    @classmethod
    def parse(cls, item: Any) -> "SecretSpec":
        """Accept ``"path/to/ref"`` or ``{"alias": "path/to/ref"}``.

        A bare reference uses its last ``/`` segment as the alias.
        """
        if isinstance(item, str):
            ref = item.strip()
            alias = ref.rstrip("/").rsplit("/", 1)[-1]
            if not alias:
                raise ConfigError(f"invalid secret reference {item!r}")
            return cls(alias=alias, ref=ref)
        if isinstance(item, dict) and len(item) == 1:
            alias, ref = next(iter(item.items()))
            if not isinstance(alias, str) or not isinstance(ref, str) or not alias or not ref:
                raise ConfigError(f"invalid secret spec {item!r}")
            return cls(alias=alias, ref=ref)
        raise ConfigError(f"secret spec must be a string or a single-entry mapping, got {item!r}")


@dataclass(frozen=True)
class SecretGroup:
    name: str
    file_path: Path
    file_format: str = "yaml"
    file_template: str = ""
    file_permissions: int = DEFAULT_FILE_PERMISSIONS
    secret_specs: tuple[SecretSpec, ...] = ()

    @property
    def aliases(self) -> list[str]:
        return [s.alias for s in self.secret_specs]
