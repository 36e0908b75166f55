"""Structured summary of a captured exception.

``ErrorInfo`` normalises an exception into the fields a failed context
stores (type, message, title, cleaned backtrace) and into a field → messages
error map.  Validation exceptions contribute their own field errors;
anything else is reported under ``base``.

Example:
    >>> try:
    ...     raise ValueError("bad amount")
    ... except ValueError as exc:
    ...     info = ErrorInfo(exc)
    >>> info.title
    'ValueError : bad amount'
    >>> info.errors()
    {'base': ['bad amount']}
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import pydantic

from flowlight.core.backtrace import BacktraceCleaner, format_frames
from flowlight.core.settings import get_settings
from flowlight.core.strings import stringify


def qualified_type_name(error: BaseException) -> str:
    """``module.ClassName`` (builtins keep their bare name)."""
    cls = type(error)
    if cls.__module__ == "builtins":
        return cls.__qualname__
    return f"{cls.__module__}.{cls.__qualname__}"


def field_errors_of(error: BaseException) -> dict[str, list[str]] | None:
    """Field-level messages carried by a validation-style exception.

    Supports ``pydantic.ValidationError`` (``loc`` joined with ``.``) and any
    exception whose ``errors()`` returns a mapping of field → messages.
    Returns ``None`` when the exception carries no such map.
    """
    if isinstance(error, pydantic.ValidationError):
        result: dict[str, list[str]] = {}
        for item in error.errors():
            key = ".".join(str(part) for part in item.get("loc", ())) or "base"
            messages = result.setdefault(key, [])
            if item["msg"] not in messages:
                messages.append(item["msg"])
        return result

    errors = getattr(error, "errors", None)
    if not callable(errors):
        return None
    try:
        value = errors()
    except Exception:  # no usable field map
        return None
    if not isinstance(value, Mapping):
        return None

    result = {}
    for key, messages in value.items():
        if isinstance(messages, (list, tuple)):
            result[str(key)] = [stringify(m) for m in messages]
        else:
            result[str(key)] = [stringify(messages)]
    return result


class ErrorInfo:
    """Wraps a raised exception with normalised metadata.

    Attributes:
        error: The original exception
        type: Qualified exception class name
        message: Display message (defaults to ``str(error)``)
        title: ``"<type> : <original message>"``
    """

    def __init__(self, error: BaseException, message: str | None = None) -> None:
        self.error = error
        self.type = qualified_type_name(error)
        self.message = message if message is not None else str(error)
        self.title = f"{self.type} : {error}"

    def errors(self) -> dict[str, list[str]]:
        """Field errors for validation exceptions, else ``{"base": [message]}``."""
        field_errors = field_errors_of(self.error)
        if field_errors is not None:
            return field_errors
        return {"base": [self.message or "Unexpected error"]}

    def backtrace(self) -> list[str]:
        """Raw frames, innermost first."""
        return format_frames(self.error)

    def clean_backtrace(self) -> list[str]:
        return BacktraceCleaner.clean(self.error)

    def to_dict(self) -> dict[str, Any]:
        """Snapshot stored on a context; backtrace truncated to the configured size."""
        limit = get_settings().backtrace_lines
        return {
            "type": self.type,
            "message": self.message,
            "exception": self.title,
            "backtrace": "\n".join(self.clean_backtrace()[:limit]),
        }

    def error_summary(self) -> str:
        """Multi-line summary for logs."""
        trace = "\n".join(self.clean_backtrace())
        return (
            f"=========== SERVER ERROR FOUND: {self.title} ===========\n"
            "\n"
            "FULL STACK TRACE\n"
            f"{trace}\n"
            "\n"
            "========================================================"
        )

    def __repr__(self) -> str:
        return f"ErrorInfo({self.title!r})"


__all__ = ["ErrorInfo", "field_errors_of", "qualified_type_name"]
