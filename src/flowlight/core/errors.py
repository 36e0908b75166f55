"""
Structured error types for Flowlight.

Flowlight separates three kinds of failure:

- **Business failures** are data, not exceptions.  Actions write them into
  ``Context.errors`` and the runners stop at the next step boundary.
- **Unexpected exceptions** raised by user code are captured by the error
  handler, recorded on the context and absorbed (unless asked to re-raise).
- **Configuration defects** (a malformed step list, a mapper that breaks its
  contract) are programming errors.  They are raised as
  :class:`FlowlightConfigError` subclasses and are never absorbed.

Every error in this module carries a category, an :class:`ErrorContext`
describing where in a pipeline it happened, and an optional chained cause.

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────┐
        │                    FlowlightError                          │
        │           (category, context, cause)                      │
        ├──────────────────────────────────────────────────────────┤
        │  FlowlightConfigError   ContextFailedError  Validation-  │
        │  (CONFIG)               (PIPELINE)          Error        │
        │       │                                     (VALIDATION) │
        │  StepConfigurationError                                   │
        │  MapperContractError                                      │
        └──────────────────────────────────────────────────────────┘

Examples:
    >>> error = FlowlightError("boom").with_context(organizer="CreateUser")
    >>> error.context.organizer
    'CreateUser'
    >>> error.to_dict()["category"]
    'INTERNAL'

Guardrails:
    ❌ DON'T: Raise for a business rule violation inside an Action
    ✅ DO: ``context.with_errors({"field": ["message"]})``

    ❌ DON'T: Catch FlowlightConfigError to keep a pipeline going
    ✅ DO: Fix the step declaration

Tags:
    error-handling, exception-hierarchy, error-context, flowlight

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from flowlight.orchestration.context import Context


class ErrorCategory(str, Enum):
    """Standard error categories for classification and logging."""

    CONFIG = "CONFIG"                # Malformed steps, broken mapper contract
    VALIDATION = "VALIDATION"        # Rule violations
    PIPELINE = "PIPELINE"            # A pipeline finished in a failed state

    INTERNAL = "INTERNAL"            # Bugs, unexpected state
    UNKNOWN = "UNKNOWN"              # Uncategorized errors


@dataclass
class ErrorContext:
    """
    Where in a pipeline an error happened.

    Attributes:
        organizer: Qualified name of the running organizer
        action: Qualified name of the running action
        step: Step label
        operation: Context operation (``CREATE`` / ``UPDATE``)
        metadata: Additional key-value pairs
    """

    organizer: str | None = None
    action: str | None = None
    step: str | None = None
    operation: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["organizer", "action", "step", "operation"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class FlowlightError(Exception):
    """
    Base exception for all Flowlight errors.

    Subclasses set ``default_category`` to classify themselves.

    Examples:
        >>> try:
        ...     raise KeyError("missing")
        ... except KeyError as e:
        ...     error = FlowlightError("lookup failed", cause=e)
        >>> error.cause
        KeyError('missing')
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> FlowlightError:
        """
        Add context to this error (fluent API).

        Unknown keys land in ``context.metadata``.
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION ERRORS (always raised)
# =============================================================================


class FlowlightConfigError(FlowlightError):
    """
    A pipeline was declared or wired incorrectly.

    The error handler lets these propagate untouched, even when asked to
    absorb exceptions; the context is not marked failed.
    """

    default_category = ErrorCategory.CONFIG


# =============================================================================
# PIPELINE ERRORS
# =============================================================================


class ContextFailedError(FlowlightError):
    """
    Raised by callers that prefer exceptions over inspecting a failed context.

    The failed context is available as ``error.pipeline_context``; a copy of
    its errors is kept in ``error.errors``.
    """

    default_category = ErrorCategory.PIPELINE

    def __init__(self, context: Context, message: str | None = None, **kwargs: Any):
        errors = context.errors()
        super().__init__(message or "Flowlight context failed.", **kwargs)
        self.pipeline_context = context
        self.errors = errors

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["errors"] = self.errors
        return result


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(FlowlightError):
    """
    Rule evaluation failed.

    ``field_errors`` maps dotted field names to messages and is merged into
    ``Context.errors`` when the error is captured by the error handler.
    """

    default_category = ErrorCategory.VALIDATION

    def __init__(
        self,
        message: str,
        *,
        field_errors: dict[str, list[str]] | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.field_errors = dict(field_errors or {})

    def errors(self) -> dict[str, list[str]]:
        return {key: list(messages) for key, messages in self.field_errors.items()}

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.field_errors:
            result["field_errors"] = self.errors()
        return result


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def categorize_error(error: BaseException) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, FlowlightError):
        return error.category
    if isinstance(error, (TypeError, AttributeError)):
        return ErrorCategory.CONFIG
    if isinstance(error, ValueError):
        return ErrorCategory.VALIDATION
    return ErrorCategory.UNKNOWN


def is_config_error(error: BaseException) -> bool:
    """True for errors that must never be absorbed by a pipeline."""
    return isinstance(error, FlowlightConfigError)


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "FlowlightError",
    "FlowlightConfigError",
    "ContextFailedError",
    "ValidationError",
    "categorize_error",
    "is_config_error",
]
