"""Secret sources: where group secret values are fetched from."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Mapping, Protocol, runtime_checkable

from push_to_file.domain.secret import Secret, SecretGroup
from push_to_file.errors import ConfigError, SecretFetchError

logger = logging.getLogger(__name__)


@runtime_checkable
class SecretSource(Protocol):
    def fetch(self, refs: list[str]) -> dict[str, str]: ...


class EnvSecretSource:
    """Each reference names an environment variable."""

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._environ = os.environ if environ is None else environ

    def fetch(self, refs: list[str]) -> dict[str, str]:
        missing = [ref for ref in refs if ref not in self._environ]
        if missing:
            raise SecretFetchError(
                f"environment variables not set: {', '.join(missing)}", ref=missing[0]
            )
        return {ref: self._environ[ref] for ref in refs}


class FileSecretSource:
    """Each reference is a file below *root*; its content is the value.

    One trailing newline is dropped, matching how mounted secret volumes are
    usually written.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def _resolve(self, ref: str) -> Path:
        root = self.root.resolve()
        path = (root / ref.lstrip("/")).resolve()
        if not path.is_relative_to(root):
            raise SecretFetchError(f"secret reference {ref!r} escapes {str(root)!r}", ref=ref)
        return path

    def fetch(self, refs: list[str]) -> dict[str, str]:
        values: dict[str, str] = {}
        for ref in refs:
            path = self._resolve(ref)
            try:
                text = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                raise SecretFetchError(f"unable to read secret {ref!r} at {str(path)!r}: {exc}", ref=ref) from exc
            values[ref] = text[:-1] if text.endswith("\n") else text
        return values


def create_source(config: dict[str, Any]) -> SecretSource:
    """Create a secret source from merged config (``source`` section)."""
    scfg = config.get("source") or {}
    kind = scfg.get("type", "env")

    if kind == "env":
        return EnvSecretSource()

    if kind == "file":
        root = scfg.get("dir")
        if not root:
            raise ConfigError("source.dir is required for the 'file' secret source")
        return FileSecretSource(Path(root).expanduser())

    raise ConfigError(f"unknown secret source type {kind!r}")


def fetch_group_secrets(group: SecretGroup, source: SecretSource) -> list[Secret]:
    """Fetch every secret of *group*, in the order the group lists them."""
    refs = list(dict.fromkeys(spec.ref for spec in group.secret_specs))
    logger.debug("Fetching %d secret(s) for group %r", len(refs), group.name)
    values = source.fetch(refs)
    return [Secret(alias=spec.alias, value=values[spec.ref]) for spec in group.secret_specs if spec.ref in values]
