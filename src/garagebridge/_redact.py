"""Helpers for safe debug logging.

Request and response bodies carry account credentials and the security
token; request headers carry the token and the application id.  Values
under those keys are masked before a payload reaches DEBUG logs.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

REDACTED = "<redacted>"

# Compared after lower-casing and dropping "-" and "_", so header names
# ("SecurityToken", "MyQApplicationId") and body keys match alike.
_SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "password",
        "username",
        "securitytoken",
        "token",
        "authorization",
        "cookie",
        "myqapplicationid",
    }
)

_MAX_DEPTH = 16


def _normalize_key(key: object) -> str:
    return str(key).lower().replace("-", "").replace("_", "")


def is_sensitive_key(key: object) -> bool:
    """Return whether values stored under *key* must not be logged."""
    return _normalize_key(key) in _SENSITIVE_KEYS


def redact_for_log(value: Any, *, max_string: int = 512, _depth: int = 0) -> Any:
    """Return a copy of *value* with sensitive fields masked.

    Mappings and lists are walked recursively; long strings are cut to
    *max_string* characters.  Anything that is not plain JSON data is
    logged by ``repr``.
    """
    if _depth > _MAX_DEPTH:
        return "<max-depth>"
    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, str):
        return value if len(value) <= max_string else f"{value[:max_string]}…<truncated>"
    if isinstance(value, Mapping):
        redacted: dict[str, Any] = {}
        for key, item in value.items():
            if is_sensitive_key(key):
                redacted[str(key)] = REDACTED
            else:
                redacted[str(key)] = redact_for_log(item, max_string=max_string, _depth=_depth + 1)
        return redacted
    if isinstance(value, (list, tuple)):
        return [redact_for_log(item, max_string=max_string, _depth=_depth + 1) for item in value]
    return repr(value)
