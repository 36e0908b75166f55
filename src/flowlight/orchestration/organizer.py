"""
Organizer - runs an ordered list of steps against one context.

An organizer declares its pipeline in :meth:`Organizer.steps` and is run
with :meth:`Organizer.call`.  Steps run in order; the first step that
leaves the context failed stops the run, and its state is snapshotted
under ``internal_only["last_failed_context"]``.

ARCHITECTURE
────────────
::

    Organizer.call(input, overrides, transform_context, hooks)
      ├── Context.create(input, overrides)
      ├── transform_context(ctx)               (optional, before any step)
      ├── with_error_handler:
      │     reduce(ctx, steps() + [all_actions_complete])
      │       ├── Step.action  → ActionCls.execute(ctx, hooks)
      │       ├── Step.inline  → fn(ctx)
      │       └── after each: failure → snapshot + stop
      │                       success → successful_actions += label
      └── success() → mark_complete()

Example::

    class RegisterUser(Organizer):
        @classmethod
        def steps(cls):
            return [Step.action(ValidateUser), Step.action(PersistUser)]

    ctx = RegisterUser.call({"email": "a@b.c"})
    if ctx.failure():
        print(ctx.formatted_errors())

Tags:
    flowlight, orchestration, organizer, step-runner, short-circuit

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import Any

from flowlight.core.logging import LogContext, get_logger
from flowlight.orchestration.context import Context
from flowlight.orchestration.error_handler import with_error_handler
from flowlight.orchestration.hooks import HooksArg
from flowlight.orchestration.step_types import MAIN_PHASE_KINDS, Step, StepKind, ensure_step

logger = get_logger(__name__)

ALL_ACTIONS_COMPLETE_KEY = "all_actions_complete"


def _mark_all_actions_complete(ctx: Context) -> None:
    ctx.with_meta({ALL_ACTIONS_COMPLETE_KEY: True})


TERMINAL_STEP = Step.inline(_mark_all_actions_complete, label=ALL_ACTIONS_COMPLETE_KEY)


class Organizer:
    """Base class for step runners."""

    @classmethod
    def steps(cls) -> list[Step]:
        """Pipeline definition; override in subclasses."""
        return []

    @classmethod
    def all_steps(cls) -> list[Step]:
        return [*cls.steps(), TERMINAL_STEP]

    @classmethod
    def call(
        cls,
        input: Mapping[str, Any] | None = None,
        overrides: Mapping[str, Any] | None = None,
        transform_context: Callable[[Context], Any] | None = None,
        hooks: HooksArg = None,
    ) -> Context:
        """
        Run the pipeline.

        Args:
            input: Caller data, becomes ``ctx.input()``
            overrides: Initial compartments (see :meth:`Context.create`)
            transform_context: Called with the context before any step runs
            hooks: Action hooks for this run

        Returns:
            The context; COMPLETE only when every step succeeded
        """
        ctx = Context.create(input, overrides).set_current_organizer(cls)

        if transform_context is not None:
            transform_context(ctx)

        with LogContext(organizer=cls.__name__):
            logger.debug("organizer.start", step_count=len(cls.steps()))
            with_error_handler(ctx, lambda c: cls.reduce(c, cls.all_steps(), hooks=hooks))
            cls._finish(ctx)

        return ctx

    @classmethod
    def reduce(cls, ctx: Context, steps: Sequence[Step], hooks: HooksArg = None) -> Context:
        """
        Run ``steps`` in order, stopping at the first failure.

        Raises:
            StepConfigurationError: For anything that is not a main-phase Step.
        """
        for step in steps:
            step = ensure_step(step, MAIN_PHASE_KINDS, "main phase")

            if step.kind is StepKind.ACTION:
                ctx.set_current_action(step.target)
                step.target.execute(ctx, hooks=hooks)
            else:
                ctx.set_current_action(step.label)
                step.target(ctx)

            if ctx.errors() or ctx.failure():
                ctx.set_last_failed_context(ctx)
                logger.info(
                    "organizer.step_failed",
                    step=step.label,
                    errors=sorted(ctx.errors()),
                    aborted=ctx.aborted,
                )
                break

            ctx.add_successful_action(step.label)

        return ctx

    @classmethod
    def reduce_if_success(cls, ctx: Context, steps: Sequence[Step], hooks: HooksArg = None) -> Context:
        """:meth:`reduce`, but only when ``ctx`` has not failed yet."""
        if ctx.success() and not ctx.errors():
            cls.reduce(ctx, steps, hooks=hooks)
        return ctx

    @classmethod
    def _finish(cls, ctx: Context) -> None:
        if ctx.success():
            ctx.mark_complete()
            logger.debug("organizer.complete", steps=ctx.successful_actions())
        else:
            logger.info("organizer.failed", errors=sorted(ctx.errors()))
