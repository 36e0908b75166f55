"""Flowlight Core -- domain-agnostic primitives used by the engine.

Architecture::

    strings.py      stringify / number formatting
    paths.py        dotted-path projection (flatten, pick, omit, ...)
    enums.py        ContextStatus, ContextOperation
    errors.py       FlowlightError hierarchy
    backtrace.py    BacktraceCleaner (filters + silencers)
    error_info.py   ErrorInfo (structured exception summary)
    logging.py      structlog configuration
    settings.py     FlowlightSettings (pydantic-settings)
"""

from flowlight.core.backtrace import BacktraceCleaner, BacktraceKind
from flowlight.core.enums import ContextOperation, ContextStatus
from flowlight.core.error_info import ErrorInfo
from flowlight.core.errors import (
    ContextFailedError,
    ErrorCategory,
    ErrorContext,
    FlowlightConfigError,
    FlowlightError,
    ValidationError,
)
from flowlight.core.paths import (
    flatten,
    list_paths,
    normalize_key_list,
    omit,
    pick,
    select_or_null,
    unflatten,
)
from flowlight.core.settings import FlowlightSettings, get_settings, reset_settings

__all__ = [
    "BacktraceCleaner",
    "BacktraceKind",
    "ContextFailedError",
    "ContextOperation",
    "ContextStatus",
    "ErrorCategory",
    "ErrorContext",
    "ErrorInfo",
    "FlowlightConfigError",
    "FlowlightError",
    "FlowlightSettings",
    "ValidationError",
    "flatten",
    "get_settings",
    "list_paths",
    "normalize_key_list",
    "omit",
    "pick",
    "reset_settings",
    "select_or_null",
    "unflatten",
]
