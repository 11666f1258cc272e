"""Render robot MQTT payloads for DEBUG logs without leaking secrets.

Reported state is JSON; any member whose key names a password, secret or
token is replaced before the payload is logged.  Payloads that are not
JSON are summarised by size only.
"""

from __future__ import annotations

import json
from typing import Any

REDACTED = "<redacted>"

_SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "password",
        "passwd",
        "pass",
        "pw",
        "secret",
        "sec",
        "credential",
        "token",
    }
)


def redact_value(value: Any) -> Any:
    """Return a copy of a decoded JSON value with sensitive members masked."""
    if isinstance(value, dict):
        return {
            key: REDACTED if str(key).lower() in _SENSITIVE_KEYS else redact_value(item)
            for key, item in value.items()
        }
    if isinstance(value, list):
        return [redact_value(item) for item in value]
    return value


def redact_payload(payload: bytes | str, *, limit: int = 512) -> str:
    """Decode *payload* as JSON and return a compact, masked rendering."""
    try:
        decoded = json.loads(payload)
    except ValueError:
        return f"<{len(payload)} bytes, not JSON>"

    text = json.dumps(redact_value(decoded), separators=(",", ":"), ensure_ascii=False)
    if len(text) > limit:
        return f"{text[:limit]}...<truncated>"
    return text
