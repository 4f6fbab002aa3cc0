"""Secret file template rendering.

Templates are Jinja2 evaluated in an immutable sandbox. The context holds two
views of the group's secrets and the environment globals are replaced by the
helpers in :mod:`push_to_file.template_funcs`:

- ``SecretsArray``: the secrets in input order, duplicates kept
- ``SecretsMap``: alias -> secret, the last duplicate wins

Helpers are called with Jinja syntax. Templates that use space-separated
calls or pipeline-style ranges need rewriting, otherwise rendering fails
with :class:`~push_to_file.errors.TemplateParseError`::

    {{ secret "user" }}                 ->  {{ secret("user") }}
    {{ b64dec (b64enc (secret "x")) }}  ->  {{ b64dec(b64enc(secret("x"))) }}
    {{ range $i, $s := .SecretsArray }} ->  {% for s in SecretsArray %}
"""

from __future__ import annotations

import logging
from typing import Sequence

from jinja2 import StrictUndefined, TemplateSyntaxError
from jinja2.sandbox import ImmutableSandboxedEnvironment

from push_to_file import messages
from push_to_file.domain.secret import Secret
from push_to_file.errors import TemplateEvalError, TemplateParseError
from push_to_file.template_funcs import template_funcs

logger = logging.getLogger(__name__)


def _build_environment() -> ImmutableSandboxedEnvironment:
    env = ImmutableSandboxedEnvironment(
        autoescape=False,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )
    # range, lipsum, cycler, ... are not part of the template surface
    env.globals.clear()
    return env


_ENV = _build_environment()


def build_secrets_map(group_name: str, group_secrets: Sequence[Secret]) -> dict[str, Secret]:
    secrets_map: dict[str, Secret] = {}
    for s in group_secrets:
        if s.alias in secrets_map:
            logger.warning(messages.CSPFK060W, s.alias, group_name)
        secrets_map[s.alias] = s
    return secrets_map


def render_file(group_name: str, group_template: str, group_secrets: Sequence[Secret]) -> bytes:
    """Render *group_template* against *group_secrets* and return UTF-8 bytes.

    Raises TemplateParseError for syntax errors and TemplateEvalError for
    anything that fails while the template executes. No partial output is
    ever returned.
    """
    secrets_map = build_secrets_map(group_name, group_secrets)

    try:
        tpl = _ENV.from_string(group_template, globals=template_funcs(secrets_map))
    except TemplateSyntaxError as exc:
        raise TemplateParseError(
            f"unable to parse template for secret group {group_name!r} (line {exc.lineno}): {exc.message}",
            group=group_name,
            lineno=exc.lineno,
        ) from exc

    try:
        rendered = tpl.render(SecretsArray=list(group_secrets), SecretsMap=secrets_map)
    except TemplateEvalError as exc:
        exc.group = exc.group or group_name
        raise
    except Exception as exc:
        raise TemplateEvalError(
            f"unable to execute template for secret group {group_name!r}: {exc}",
            group=group_name,
        ) from exc

    return rendered.encode("utf-8")
