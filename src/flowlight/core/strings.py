"""String coercion helpers shared by the context and the path projector.

Error messages and dotted rule keys arrive as arbitrary values (ints from
a rule engine, enums, exception objects, nested dicts).  Everything that is
stored as a message or used as a lookup key goes through ``stringify`` so
the same value always renders the same way.

Tags:
    flowlight, strings, normalisation

Doc-Types:
    api-reference
"""

from __future__ import annotations

import json
from typing import Any


def format_number(value: int | float) -> str:
    """Render a number as plain decimal text (``10000.0`` → ``"10000"``)."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def has_custom_str(value: Any) -> bool:
    """True when the value's type defines its own ``__str__``."""
    return type(value).__str__ is not object.__str__


def stringify(value: Any) -> str:
    """Normalise any value to a string.

    Rules:
        - ``str`` is returned unchanged
        - ``bool`` → ``"1"`` / ``"0"``
        - ``int`` / ``float`` → decimal text
        - ``None`` → ``""``
        - dicts, lists and tuples → compact JSON (unicode unescaped)
        - objects defining ``__str__`` → ``str(value)``
        - anything else → JSON, falling back to the type name

    Example:
        >>> stringify(True)
        '1'
        >>> stringify({"a": 1})
        '{"a":1}'
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, int | float):
        return format_number(value)
    if value is None:
        return ""
    if isinstance(value, dict | list | tuple):
        return _to_json(value)
    if has_custom_str(value):
        return str(value)
    return _to_json(value)


def _to_json(value: Any) -> str:
    try:
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError):
        return type(value).__name__
