"""Functions exposed to secret file templates.

``secret``, ``b64enc`` and ``b64dec`` are the only callables a template can
reach. Nothing here touches the filesystem, the environment or the clock.
"""

from __future__ import annotations

import base64
import binascii
from typing import Callable, Mapping

from push_to_file.domain.secret import Secret
from push_to_file.errors import Base64DecodeError, UnknownAliasError


def _to_bytes(value: str | bytes) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else bytes(value)


def _mask(value: str | bytes) -> str:
    text = value if isinstance(value, str) else value.decode("utf-8", errors="replace")
    if len(text) <= 8:
        return "***"
    return text[:4] + "..." + text[-4:]


def make_secret_func(secrets_map: Mapping[str, Secret]) -> Callable[[str], str]:
    def secret(alias: str) -> str:
        s = secrets_map.get(alias)
        if s is None:
            raise UnknownAliasError(alias)
        return s.value

    return secret


def b64enc(value: str | bytes) -> str:
    return base64.b64encode(_to_bytes(value)).decode("ascii")


def b64dec(value: str | bytes) -> str:
    try:
        return base64.b64decode(_to_bytes(value), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as exc:
        raise Base64DecodeError(value, _mask(value)) from exc


def template_funcs(secrets_map: Mapping[str, Secret]) -> dict[str, Callable[..., str]]:
    return {
        "secret": make_secret_func(secrets_map),
        "b64enc": b64enc,
        "b64dec": b64dec,
    }
