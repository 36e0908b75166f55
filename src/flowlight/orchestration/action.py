"""
Action - a single unit of work with a lifecycle.

Subclasses implement :meth:`Action.perform`.  Callers use the
:meth:`Action.execute` classmethod, which builds the action, runs hooks
around ``perform`` and returns the context.

Lifecycle::

    NOT_STARTED ─ before_execute ─▶ BEFORE_HOOK_RUN ─ perform ─▶ PERFORM_RUN
        ─ after_execute ─▶ AFTER_HOOK_RUN ─▶ SUCCEEDED | FAILED

    perform raises:  after_execute → after_failure → exception re-raised

A context that is already COMPLETE is returned untouched: no hooks run and
the action is never constructed.

Example::

    class NormalizeEmail(Action):
        def perform(self, ctx: Context) -> None:
            email = ctx.input().get("email", "")
            ctx.with_params({"email": email.strip().lower()})

    ctx = NormalizeEmail.execute({"email": " A@B.C "})
    ctx.params()["email"]   # "a@b.c"
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from enum import Enum
from typing import Any

from flowlight.core.enums import ContextStatus
from flowlight.core.logging import get_logger
from flowlight.orchestration.context import Context
from flowlight.orchestration.hooks import HookFn, HooksArg, resolve_hooks

logger = get_logger(__name__)


class ActionState(str, Enum):
    """Where an Action instance is in its lifecycle."""

    NOT_STARTED = "not_started"
    BEFORE_HOOK_RUN = "before_hook_run"
    PERFORM_RUN = "perform_run"
    AFTER_HOOK_RUN = "after_hook_run"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class Action(ABC):
    """Base class for units of work."""

    def __init__(self, context: Context | Mapping[str, Any] | None = None):
        if isinstance(context, Context):
            self.context = context
        else:
            self.context = Context.create(context)
        self.state = ActionState.NOT_STARTED
        self.context.with_invoked_action(self).set_current_action(type(self))

    @classmethod
    def execute(
        cls,
        context: Context | Mapping[str, Any] | None = None,
        hooks: HooksArg = None,
    ) -> Context:
        """
        Run this action against a context (or a seed mapping).

        Args:
            context: Existing context, or a mapping used as input for a new one
            hooks: ``ActionHooks`` bundle or ``HookRegistry`` for this run

        Returns:
            The same context, mutated by ``perform``
        """
        if isinstance(context, Context) and context.status is ContextStatus.COMPLETE:
            return context

        action = cls(context)
        return action.run(hooks)

    def run(self, hooks: HooksArg = None) -> Context:
        bundle = resolve_hooks(hooks, type(self))
        ctx = self.context

        _fire(bundle.before_execute, ctx)
        self.state = ActionState.BEFORE_HOOK_RUN

        try:
            self.perform(ctx)
        except Exception as exc:
            logger.debug(
                "action.perform_raised",
                action=type(self).__name__,
                error_type=type(exc).__name__,
            )
            _fire(bundle.after_execute, ctx)
            self.state = ActionState.AFTER_HOOK_RUN
            _fire(bundle.after_failure, ctx)
            self.state = ActionState.FAILED
            raise

        self.state = ActionState.PERFORM_RUN
        _fire(bundle.after_execute, ctx)
        self.state = ActionState.AFTER_HOOK_RUN

        if not ctx.errors() and not ctx.aborted:
            _fire(bundle.after_success, ctx)
            self.state = ActionState.SUCCEEDED
        else:
            _fire(bundle.after_failure, ctx)
            self.state = ActionState.FAILED
            logger.debug("action.failed", action=type(self).__name__, errors=list(ctx.errors()))

        return ctx

    @abstractmethod
    def perform(self, context: Context) -> None:
        """Do the work; report business failures via ``context.with_errors``."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(state={self.state.value})"


def _fire(hook: HookFn | None, ctx: Context) -> None:
    if hook is not None:
        hook(ctx)
