"""Error capture - turn unexpected exceptions into context failure.

Runners wrap their step loop in :func:`with_error_handler`.  When user code
raises, the exception is recorded on the context (error info, a generic
``base`` message, a failure snapshot) and the context is aborted.  The
exception is swallowed unless ``rethrow`` is set.

Configuration errors (:class:`~flowlight.core.errors.FlowlightConfigError`)
are pipeline bugs, not runtime failures: they pass through untouched.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from flowlight.core.errors import categorize_error, is_config_error
from flowlight.core.logging import get_logger
from flowlight.core.settings import get_settings
from flowlight.orchestration.context import Context

logger = get_logger(__name__)

Block = Callable[[Context], Any]


def capture_exception_into_context(ctx: Context, error: BaseException) -> Context:
    """Record ``error`` on ``ctx`` and abort it."""
    ctx.record_raised_error(error)
    ctx.with_errors({"base": [get_settings().generic_error_message]})
    ctx.set_last_failed_context(ctx)
    ctx.abort()
    logger.warning(
        "error_handler.captured",
        organizer=ctx.organizer_name,
        action=ctx.action_name,
        error_type=type(error).__name__,
        error_category=categorize_error(error).value,
        error=str(error),
    )
    return ctx


def with_error_handler(
    ctx: Context,
    block_or_exception: Block | BaseException,
    rethrow: bool = False,
) -> Context:
    """
    Run ``block(ctx)``, capturing any exception into ``ctx``.

    Args:
        ctx: Context to record failures on
        block_or_exception: ``fn(ctx)``, or an exception to capture as if raised
        rethrow: Re-raise the original exception after recording it

    Returns:
        ``ctx``
    """
    if isinstance(block_or_exception, BaseException):
        error = block_or_exception

        def block(_: Context) -> None:
            raise error
    else:
        block = block_or_exception

    try:
        block(ctx)
    except Exception as exc:
        if is_config_error(exc):
            raise
        capture_exception_into_context(ctx, exc)
        if rethrow:
            raise
    return ctx
