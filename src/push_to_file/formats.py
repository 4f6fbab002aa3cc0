"""Standard secret file formats.

Each format is a built-in template over ``SecretsArray`` plus an alias check,
so that ``format: dotenv`` needs no template from the user. ``template`` is the
escape hatch: the group supplies its own.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Iterable

from push_to_file.errors import ConfigError

CUSTOM_FORMAT = "template"

_SHELL_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_PROPERTIES_FORBIDDEN_RE = re.compile(r"[=:\s]")

YAML_TEMPLATE = (
    "{% for s in SecretsArray %}"
    "{{ s.alias | tojson }}: {{ s.value | tojson }}\n"
    "{% endfor %}"
)

JSON_TEMPLATE = (
    '{{ "{" }}'
    "{% for s in SecretsArray %}"
    "{% if not loop.first %},{% endif %}"
    "{{ s.alias | tojson }}:{{ s.value | tojson }}"
    "{% endfor %}"
    '{{ "}" }}\n'
)

DOTENV_TEMPLATE = (
    "{% for s in SecretsArray %}"
    r'''{{ s.alias }}="{{ s.value | replace("\\", "\\\\") | replace("\"", "\\\"") | replace("\n", "\\n") }}"'''
    "\n"
    "{% endfor %}"
)

BASH_TEMPLATE = (
    "{% for s in SecretsArray %}"
    r"""export {{ s.alias }}='{{ s.value | replace("'", "'\\''") }}'"""
    "\n"
    "{% endfor %}"
)

PROPERTIES_TEMPLATE = (
    "{% for s in SecretsArray %}"
    r"""{{ s.alias }} = {{ s.value | replace("\\", "\\\\") | replace("\n", "\\n") }}"""
    "\n"
    "{% endfor %}"
)


def _any_alias(alias: str) -> str | None:
    return None if alias else "alias must not be empty"


def _shell_alias(alias: str) -> str | None:
    if _SHELL_NAME_RE.match(alias):
        return None
    return "alias must be a valid shell variable name"


def _properties_alias(alias: str) -> str | None:
    if alias and not _PROPERTIES_FORBIDDEN_RE.search(alias):
        return None
    return "alias must not be empty or contain '=', ':' or whitespace"


@dataclass(frozen=True)
class StandardFormat:
    name: str
    template: str
    extension: str
    check_alias: Callable[[str], str | None]


FILE_FORMATS: dict[str, StandardFormat] = {
    "yaml": StandardFormat("yaml", YAML_TEMPLATE, "yaml", _any_alias),
    "json": StandardFormat("json", JSON_TEMPLATE, "json", _any_alias),
    "dotenv": StandardFormat("dotenv", DOTENV_TEMPLATE, "env", _shell_alias),
    "bash": StandardFormat("bash", BASH_TEMPLATE, "sh", _shell_alias),
    "properties": StandardFormat("properties", PROPERTIES_TEMPLATE, "properties", _properties_alias),
}


def available_formats() -> list[str]:
    return sorted([*FILE_FORMATS, CUSTOM_FORMAT])


def default_file_name(group_name: str, file_format: str) -> str:
    fmt = FILE_FORMATS.get(file_format)
    extension = fmt.extension if fmt else "txt"
    return f"{group_name}.{extension}"


def resolve_template(group_name: str, file_format: str, custom_template: str = "") -> str:
    """Return the template text a group renders with."""
    if file_format == CUSTOM_FORMAT:
        if not custom_template:
            raise ConfigError(f"secret group {group_name!r}: format 'template' requires a template")
        return custom_template
    fmt = FILE_FORMATS.get(file_format)
    if fmt is None:
        raise ConfigError(
            f"secret group {group_name!r}: unknown file format {file_format!r}; "
            f"expected one of {', '.join(available_formats())}"
        )
    if custom_template:
        raise ConfigError(
            f"secret group {group_name!r}: a custom template requires format 'template', got {file_format!r}"
        )
    return fmt.template


def validate_aliases(group_name: str, file_format: str, aliases: Iterable[str]) -> None:
    fmt = FILE_FORMATS.get(file_format)
    if fmt is None:
        return
    problems = []
    for alias in aliases:
        reason = fmt.check_alias(alias)
        if reason:
            problems.append(f"{alias!r}: {reason}")
    if problems:
        raise ConfigError(
            f"secret group {group_name!r}: invalid aliases for format {file_format!r}: " + "; ".join(problems)
        )
