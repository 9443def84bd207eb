"""Strip control characters before values reach Postgres.

Postgres rejects NUL in text and \\u0000 in jsonb; the other C0 controls are
dropped too. Tab, newline and carriage return are kept.
"""
from __future__ import annotations

import re
from typing import Any

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


def sanitize(value: Any) -> Any:
    """Return ``value`` with control characters removed from every string inside it.

    Dicts keep their keys, lists and tuples keep order and length (tuples come
    back as lists, the JSON shape). Other scalars pass through untouched.
    """
    if isinstance(value, str):
        return _CONTROL_CHARS.sub("", value)
    if value is None:
        return None
    if isinstance(value, dict):
        return {key: sanitize(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [sanitize(item) for item in value]
    return value
