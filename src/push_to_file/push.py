"""Render secret groups and push them to writers."""

from __future__ import annotations

import logging
from typing import Callable, Sequence

from push_to_file import messages
from push_to_file.domain.secret import Secret, SecretGroup
from push_to_file.errors import (
    Base64DecodeError,
    ConfigError,
    TemplateEvalError,
    UnknownAliasError,
    WriteError,
)
from push_to_file.file_io import open_file_as_sink
from push_to_file.formats import resolve_template
from push_to_file.render import render_file
from push_to_file.runtime.checksums import content_has_changed, file_checksum, prev_file_checksums
from push_to_file.sinks import Sink
from push_to_file.sinks.null import DISCARD, NullSink
from push_to_file.tracing import get_tracer

logger = logging.getLogger(__name__)

# base64 of "REDACTED", so templates that b64dec a secret also validate
PLACEHOLDER_VALUE = "UkVEQUNURUQ="

PushToWriterFunc = Callable[[Sink, str, str, Sequence[Secret]], bool]
OpenSinkFunc = Callable[..., Sink]


def write_content(writer: Sink, content: bytes, group_name: str) -> bool:
    """Write *content* unless it matches what was last written for the group.

    Returns True when the bytes were handed to *writer*. A NullSink always
    receives the bytes and never touches the checksum registry.
    """
    if isinstance(writer, NullSink):
        writer.write(content)
        return True

    checksum = file_checksum(content)
    if not content_has_changed(group_name, checksum):
        logger.info(messages.CSPFK018I)
        return False

    try:
        writer.write(content)
    except OSError as exc:
        raise WriteError(
            f"unable to write secrets for group {group_name!r}: {exc}",
            path=getattr(writer, "path", None),
        ) from exc
    prev_file_checksums.set(group_name, checksum)
    return True


def push_to_writer(
    writer: Sink,
    group_name: str,
    group_template: str,
    group_secrets: Sequence[Secret],
) -> bool:
    """Render a group's template and push the result to *writer*.

    The writer is not closed here; for an atomic file sink the caller's close
    is the commit.
    """
    with get_tracer().start_as_current_span(
        "push_to_writer",
        attributes={"group.name": group_name, "secrets.count": len(group_secrets)},
    ) as span:
        content = render_file(group_name, group_template, group_secrets)
        written = write_content(writer, content, group_name)
        span.set_attribute("push.written", written)
        return written


def _abort(writer: Sink) -> None:
    abort = getattr(writer, "abort", None)
    if abort is not None:
        abort()


def push_group_to_file(
    group: SecretGroup,
    secrets: Sequence[Secret],
    *,
    open_sink: OpenSinkFunc | None = None,
    push: PushToWriterFunc | None = None,
) -> bool:
    """Push one group to its file. Returns True when the file was rewritten."""
    open_sink = open_sink or open_file_as_sink
    push = push or push_to_writer

    fetched = {s.alias for s in secrets}
    missing = [alias for alias in group.aliases if alias not in fetched]
    if missing:
        raise ConfigError(f"secret group {group.name!r} is missing values for: {', '.join(missing)}")

    template = resolve_template(group.name, group.file_format, group.file_template)
    prev_checksum = prev_file_checksums.get(group.name)
    writer = open_sink(group.file_path, group.file_permissions)
    try:
        written = push(writer, group.name, template, secrets)
    except (UnknownAliasError, Base64DecodeError):
        _abort(writer)
        raise
    except TemplateEvalError as exc:
        _abort(writer)
        # the original message may quote secret values
        raise TemplateEvalError(
            f"failed to execute template, with secret values, on push to file for secret group {group.name!r}",
            group=group.name,
        ) from exc
    except BaseException:
        _abort(writer)
        raise

    if not written:
        _abort(writer)
        return False

    try:
        writer.close()
    except BaseException:
        # nothing was committed; let the next push retry
        if prev_checksum is None:
            prev_file_checksums.pop(group.name)
        else:
            prev_file_checksums.set(group.name, prev_checksum)
        raise
    logger.info(messages.CSPFK019I, group.name, str(group.file_path))
    return True


def validate_group_template(group: SecretGroup) -> None:
    """Dry-run a group's template with placeholder values into the null sink."""
    template = resolve_template(group.name, group.file_format, group.file_template)
    placeholders = [Secret(alias=alias, value=PLACEHOLDER_VALUE) for alias in group.aliases]
    push_to_writer(DISCARD, group.name, template, placeholders)
