"""push-to-file configuration.

Config files:
  - Global:  ~/.config/push-to-file/config.json
  - Project: push-to-file.json (current directory)

Merge order: global → project → environment variables (highest priority).
An explicit ``--config`` path replaces both files.

Templates use Jinja call syntax (``secret("user")``, not ``secret "user"``);
see :mod:`push_to_file.render`.

Example::

    {
      "source": {"type": "env"},
      "groups": {
        "db": {
          "format": "template",
          "path": "/run/app/db.conf",
          "permissions": "0640",
          "template": "user={{ secret('user') }}\\n",
          "secrets": [{"user": "DB_USER"}, "DB_PASSWORD"]
        }
      }
    }
"""

from __future__ import annotations

import json
import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict

from .domain.secret import DEFAULT_FILE_PERMISSIONS, SecretGroup, SecretSpec
from .errors import ConfigError
from .file_io import atomic_write
from .formats import CUSTOM_FORMAT, default_file_name, resolve_template, validate_aliases

logger = logging.getLogger(__name__)

DEFAULT_SECRETS_DIR = Path.home() / ".local" / "share" / "push-to-file" / "secrets"
DEFAULT_LOG_FILE = Path.home() / ".local" / "state" / "push-to-file" / "push-to-file.log"


class Scope(str, Enum):
    GLOBAL = "global"
    PROJECT = "project"


def config_path(scope: Scope) -> Path:
    if scope is Scope.PROJECT:
        return Path.cwd() / "push-to-file.json"
    return Path.home() / ".config" / "push-to-file" / "config.json"


def _read_json(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"config {path} must contain a JSON object")
    return data


# Mapping: config key → env var name
_ENV_OVERRIDES: list[tuple[str, str]] = [
    ("debug", "PUSH_TO_FILE_DEBUG"),
    ("log_file", "PUSH_TO_FILE_LOG_FILE"),
    ("secrets_dir", "PUSH_TO_FILE_SECRETS_DIR"),
    ("interval", "PUSH_TO_FILE_INTERVAL"),
]

_OTLP_ENV: list[tuple[str, str]] = [
    ("endpoint", "OTEL_EXPORTER_OTLP_ENDPOINT"),
    ("headers", "OTEL_EXPORTER_OTLP_HEADERS"),
]


def load_config(path: Path | None = None) -> Dict[str, Any]:
    """Load merged config: global → project → env vars, or *path* → env vars."""
    if path is not None:
        if not path.exists():
            raise ConfigError(f"config file not found: {path}")
        merged = _read_json(path)
        merged.setdefault("config_dir", str(path.parent))
        _apply_env_overrides(merged)
        return merged

    global_cfg = _read_json(config_path(Scope.GLOBAL))
    project_cfg = _read_json(config_path(Scope.PROJECT))

    # Merge: project overrides global
    merged: Dict[str, Any] = {**global_cfg}
    for k, v in project_cfg.items():
        if isinstance(v, dict) and isinstance(merged.get(k), dict):
            merged[k] = {**merged[k], **v}
        else:
            merged[k] = v
    merged.setdefault("config_dir", str(Path.cwd()))

    # Environment variables override everything
    _apply_env_overrides(merged)

    return merged


def load_raw_config(scope: Scope) -> Dict[str, Any]:
    """Load config for a specific scope without merge/env overrides."""
    return _read_json(config_path(scope))


def _apply_env_overrides(merged: Dict[str, Any]) -> None:
    for config_key, env_var in _ENV_OVERRIDES:
        val = os.environ.get(env_var)
        if val:
            if config_key == "interval":
                try:
                    merged[config_key] = int(val)
                except ValueError:
                    logger.warning("Invalid %s value %r; ignoring", env_var, val)
            elif config_key == "debug":
                merged[config_key] = val.lower() == "true"
            else:
                merged[config_key] = val

    if "otlp" not in merged and not any(os.environ.get(env_var) for _, env_var in _OTLP_ENV):
        return
    section = merged.setdefault("otlp", {})
    for field, env_var in _OTLP_ENV:
        val = os.environ.get(env_var)
        if val:
            section[field] = val


def save_config(data: Dict[str, Any], scope: Scope) -> None:
    """Save config to the specified scope."""
    atomic_write(config_path(scope), (json.dumps(data, indent=2, ensure_ascii=False) + "\n").encode("utf-8"))


def parse_permissions(value: Any) -> int:
    """Accept 0o640, 416, "0640", "640" or "0o640"."""
    if value is None or value == "":
        return DEFAULT_FILE_PERMISSIONS
    if isinstance(value, bool):
        raise ConfigError(f"invalid file permissions {value!r}")
    if isinstance(value, int):
        mode = value
    elif isinstance(value, str):
        try:
            mode = int(value.strip().removeprefix("0o"), 8)
        except ValueError as exc:
            raise ConfigError(f"invalid file permissions {value!r}") from exc
    else:
        raise ConfigError(f"invalid file permissions {value!r}")
    if not 0 <= mode <= 0o777:
        raise ConfigError(f"file permissions out of range: {oct(mode)}")
    return mode


def _group_file_path(name: str, file_format: str, raw_path: str | None, secrets_dir: Path) -> Path:
    if not raw_path:
        return secrets_dir / default_file_name(name, file_format)
    path = Path(raw_path).expanduser()
    if raw_path.endswith("/"):
        path = path / default_file_name(name, file_format)
    if not path.is_absolute():
        path = secrets_dir / path
    return path


def _group_template(name: str, gcfg: Dict[str, Any], config_dir: Path) -> str:
    template = gcfg.get("template") or ""
    template_file = gcfg.get("template_file")
    if template and template_file:
        raise ConfigError(f"secret group {name!r}: set either template or template_file, not both")
    if template_file:
        path = Path(template_file).expanduser()
        if not path.is_absolute():
            path = config_dir / path
        try:
            return path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"secret group {name!r}: unable to read template {str(path)!r}: {exc}") from exc
    return template


def parse_group(name: str, gcfg: Dict[str, Any], *, secrets_dir: Path, config_dir: Path) -> SecretGroup:
    if not isinstance(gcfg, dict):
        raise ConfigError(f"secret group {name!r} must be a JSON object")

    template = _group_template(name, gcfg, config_dir)
    file_format = gcfg.get("format") or (CUSTOM_FORMAT if template else "yaml")
    # fails early on unknown formats and template/format mismatches
    resolve_template(name, file_format, template)

    raw_secrets = gcfg.get("secrets") or []
    if isinstance(raw_secrets, dict):
        raw_secrets = [{alias: ref} for alias, ref in raw_secrets.items()]
    if not isinstance(raw_secrets, list):
        raise ConfigError(f"secret group {name!r}: secrets must be a list or mapping")
    specs = tuple(SecretSpec.parse(item) for item in raw_secrets)
    validate_aliases(name, file_format, [s.alias for s in specs])

    return SecretGroup(
        name=name,
        file_path=_group_file_path(name, file_format, gcfg.get("path"), secrets_dir),
        file_format=file_format,
        file_template=template,
        file_permissions=parse_permissions(gcfg.get("permissions")),
        secret_specs=specs,
    )


def parse_groups(config: Dict[str, Any]) -> list[SecretGroup]:
    """Build validated secret groups from the ``groups`` section, sorted by name."""
    groups_cfg = config.get("groups") or {}
    if not isinstance(groups_cfg, dict):
        raise ConfigError("groups must be a JSON object keyed by group name")
    secrets_dir = Path(config.get("secrets_dir") or DEFAULT_SECRETS_DIR).expanduser()
    config_dir = Path(config.get("config_dir") or Path.cwd())
    return [
        parse_group(name, groups_cfg[name], secrets_dir=secrets_dir, config_dir=config_dir)
        for name in sorted(groups_cfg)
    ]


def get_otlp_config(config: Dict[str, Any]) -> Dict[str, str]:
    return config.get("otlp", {})
