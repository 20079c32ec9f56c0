"""Masking of device credentials in log output.

Event requests carry the device key and a signed ``Authorization`` header,
and their ``extra`` field is itself a JSON document. Everything logged by
:mod:`pyyoda.event_request` goes through here first.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

_MASK = "<redacted>"
_MAX_DEPTH = 20

_CREDENTIAL_KEYS: frozenset[str] = frozenset(
    {"authorization", "cookie", "key", "password", "secret", "sign", "token"}
)


def _is_credential(name: Any) -> bool:
    return str(name).strip().lower() in _CREDENTIAL_KEYS


def _clip(text: str, max_string: int) -> str:
    return text if len(text) <= max_string else f"{text[:max_string]}…<truncated>"


def redact_for_log(value: Any, *, max_string: int = 512, _depth: int = 0) -> Any:
    """Return a copy of *value* with credential fields masked.

    Strings holding a JSON object are decoded and masked too, then
    re-encoded. Long strings are clipped to *max_string* characters.
    """
    if _depth > _MAX_DEPTH:
        return "<max-depth>"
    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"
    if isinstance(value, str):
        if value.startswith("{"):
            try:
                decoded = json.loads(value)
            except ValueError:
                decoded = None
            if isinstance(decoded, dict):
                masked = redact_for_log(decoded, max_string=max_string, _depth=_depth + 1)
                return _clip(json.dumps(masked, ensure_ascii=False), max_string)
        return _clip(value, max_string)
    if isinstance(value, Mapping):
        return {
            str(k): _MASK if _is_credential(k) else redact_for_log(v, max_string=max_string, _depth=_depth + 1)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [redact_for_log(v, max_string=max_string, _depth=_depth + 1) for v in value]
    return repr(value)


def redact_auth_header(header: str) -> str:
    """Mask the ``sign`` and ``key`` parts of a ``k=v;k=v`` auth header."""
    masked: list[str] = []
    for part in header.split(";"):
        name, sep, _ = part.partition("=")
        masked.append(f"{name}={_MASK}" if sep and _is_credential(name) else part)
    return ";".join(masked)
