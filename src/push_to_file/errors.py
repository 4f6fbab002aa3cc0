"""Exception hierarchy for push-to-file."""

from __future__ import annotations

from pathlib import Path


class PushToFileError(Exception):
    """Base class for every error raised by push_to_file."""


class TemplateError(PushToFileError):
    def __init__(self, message: str, *, group: str = "") -> None:
        super().__init__(message)
        self.group = group


class TemplateParseError(TemplateError):
    def __init__(self, message: str, *, group: str = "", lineno: int | None = None) -> None:
        super().__init__(message, group=group)
        self.lineno = lineno


class TemplateEvalError(TemplateError):
    pass


class UnknownAliasError(TemplateEvalError):
    def __init__(self, alias: str) -> None:
        super().__init__(f"secret alias {alias!r} not present in specified secrets for group")
        self.alias = alias


class Base64DecodeError(TemplateEvalError):
    def __init__(self, value: str | bytes, masked: str) -> None:
        super().__init__(f"value {masked!r} could not be base64 decoded")
        self.value = value


class SinkError(PushToFileError):
    def __init__(self, message: str, *, path: Path | str | None = None) -> None:
        super().__init__(message)
        self.path = path


class DirectoryCreationError(SinkError):
    pass


class FileOpenError(SinkError):
    pass


class AtomicWriterInitError(SinkError):
    pass


class WriteError(SinkError):
    pass


class ConfigError(PushToFileError):
    pass


class SecretFetchError(ConfigError):
    def __init__(self, message: str, *, ref: str = "") -> None:
        super().__init__(message)
        self.ref = ref
