"""Redaction of secret-looking values before they reach logs or event sinks.

Three mechanisms are applied:

* key denylist -- any mapping key containing a denylisted word has its value
  replaced with ``[REDACTED]``;
* env entries -- ``{"name": "DB_PASSWORD", "value": ...}`` entries are redacted
  when the *name* matches the denylist;
* command arguments -- ``--password=...`` style flags keep the flag and drop
  the value.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from typing import Any

REDACTED = "[REDACTED]"

_DENYLIST = (
    "password",
    "passwd",
    "secret",
    "token",
    "apikey",
    "api_key",
    "api-key",
    "credential",
    "private_key",
    "private-key",
)

_RE_SECRET_FLAG = re.compile(
    r"^(--?[\w.-]*(?:" + "|".join(re.escape(word) for word in _DENYLIST) + r")[\w.-]*=)(.+)$",
    re.IGNORECASE,
)


def is_sensitive_key(key: str) -> bool:
    lowered = key.lower()
    return any(word in lowered for word in _DENYLIST)


def redact_value(value: Any) -> Any:
    """Redact a single scalar; strings with a secret flag keep the flag."""
    if isinstance(value, str):
        match = _RE_SECRET_FLAG.match(value)
        if match:
            return f"{match.group(1)}{REDACTED}"
    return value


def redact(value: Any) -> Any:
    """Return a redacted copy of *value*; the input is never mutated."""
    if isinstance(value, Mapping):
        name = value.get("name")
        env_like = isinstance(name, str) and "value" in value and is_sensitive_key(name)
        out: dict[str, Any] = {}
        for key, item in value.items():
            if is_sensitive_key(str(key)) or (env_like and key == "value"):
                out[key] = REDACTED
            else:
                out[key] = redact(item)
        return out
    if isinstance(value, (list, tuple)):
        return [redact(item) for item in value]
    return redact_value(value)


def summarize(value: Any, *, sensitive: bool = False, max_length: int = 256) -> str:
    """Render *value* as a compact, redacted, length-bounded string."""
    if sensitive:
        return REDACTED
    if value is None:
        return "<absent>"
    cleaned = redact(value)
    if isinstance(cleaned, str):
        text = cleaned
    else:
        text = json.dumps(cleaned, sort_keys=True, separators=(",", ":"), default=str)
    if len(text) > max_length:
        text = text[: max(max_length - 3, 0)] + "..."
    return text
