"""
Orchestrator - a two-phase runner.

Before its own steps run, an orchestrator runs a *pre-phase* of
``organizer_steps()``.  Each pre-phase step works on its own sub-context,
seeded from a copy of the orchestrator's input:

    Step.producer(fn)        fn(input) -> Context | dict | None     (delegate)
    Step.organizer(OrgCls)   OrgCls.call(input)                     (delegate)
    Step.action(ActionCls)   ActionCls.execute(fresh sub-context)   (execute)

After each pre-phase step the optional ``each_organizer_result(sub, root)``
observer decides what to carry into the root context; a by-value summary
of every sub-context is also kept in ``internal_only["organizer_results"]``.
Sub-contexts never share mutable state with the root.

Then, if the input carries a callable under ``"orchestrator_action_proc"``,
it is called with the root context, and the main phase runs exactly like
:meth:`Organizer.reduce`.

Example::

    class Checkout(Orchestrator):
        @classmethod
        def organizer_steps(cls):
            return [Step.organizer(LoadCart), Step.producer(price_quote)]

        @classmethod
        def steps(cls):
            return [Step.action(ChargeCard)]

    def keep_totals(sub, root):
        root.with_params(sub.params(["total"]))

    ctx = Checkout.call({"cart_id": 7}, each_organizer_result=keep_totals)
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, Literal

from flowlight.core.logging import LogContext, get_logger
from flowlight.orchestration.context import Context, copy_value
from flowlight.orchestration.error_handler import with_error_handler
from flowlight.orchestration.exceptions import StepConfigurationError
from flowlight.orchestration.hooks import HooksArg
from flowlight.orchestration.organizer import Organizer
from flowlight.orchestration.step_types import PRE_PHASE_KINDS, Step, StepKind, ensure_step

logger = get_logger(__name__)

ACTION_PROC_KEY = "orchestrator_action_proc"

DispatchMode = Literal["delegate", "execute"]
Observer = Callable[[Context, Context], Any]


class Orchestrator(Organizer):
    """Organizer with a pre-phase of delegated steps."""

    @classmethod
    def organizer_steps(cls) -> list[Step]:
        """Pre-phase definition; override in subclasses."""
        return []

    @classmethod
    def classify(cls, step: Any) -> DispatchMode:
        """
        ``"delegate"`` for producers and organizers, ``"execute"`` for actions.

        Raises:
            StepConfigurationError: For anything that cannot run in the pre-phase.
        """
        step = ensure_step(step, PRE_PHASE_KINDS, "pre-phase")
        if step.kind is StepKind.ACTION:
            return "execute"
        return "delegate"

    @classmethod
    def call(  # type: ignore[override]
        cls,
        input: Mapping[str, Any] | None = None,
        overrides: Mapping[str, Any] | None = None,
        each_organizer_result: Observer | None = None,
        hooks: HooksArg = None,
    ) -> Context:
        """
        Run the pre-phase, the late-bound input proc, then the main phase.

        Args:
            input: Caller data; each pre-phase step receives a copy
            overrides: Initial compartments of the root context
            each_organizer_result: ``fn(sub_context, root_context)`` after each pre-phase step
            hooks: Action hooks for this run (passed to nested organizers too)

        Returns:
            The root context; COMPLETE only when both phases succeeded
        """
        ctx = Context.create(input, overrides).set_current_organizer(cls)

        def run(root: Context) -> None:
            cls.process_each_organizer(root, each_organizer_result, hooks=hooks)

            proc = root.input().get(ACTION_PROC_KEY)
            if callable(proc):
                proc(root)

            cls.reduce(root, cls.all_steps(), hooks=hooks)

        with LogContext(organizer=cls.__name__):
            logger.debug(
                "orchestrator.start",
                pre_phase_steps=len(cls.organizer_steps()),
                step_count=len(cls.steps()),
            )
            with_error_handler(ctx, run)
            cls._finish(ctx)

        return ctx

    @classmethod
    def process_each_organizer(
        cls,
        root: Context,
        each_organizer_result: Observer | None = None,
        hooks: HooksArg = None,
    ) -> Context:
        for step in cls.organizer_steps():
            mode = cls.classify(step)
            seed = copy_value(root.input())
            root.set_current_action(step.target if step.kind is StepKind.ACTION else step.label)

            if mode == "delegate":
                sub = cls.run_delegate(step, seed, root, hooks=hooks)
            else:
                sub = cls.run_action_execute(step, seed, hooks=hooks)

            logger.debug(
                "orchestrator.pre_phase_step",
                step=step.label,
                mode=mode,
                success=sub.success(),
            )
            root.add_organizer_result(step.label, sub)

            if each_organizer_result is not None:
                each_organizer_result(sub, root)

        return root

    @classmethod
    def run_delegate(
        cls,
        step: Step,
        seed: dict[str, Any],
        root: Context,
        hooks: HooksArg = None,
    ) -> Context:
        if step.kind is StepKind.ORGANIZER:
            return step.target.call(seed, hooks=hooks)

        result = step.target(seed)

        if isinstance(result, Context):
            # never hand the root itself to the observer as a sub-context
            return result.copy() if result is root else result
        if isinstance(result, Mapping):
            return Context.create(dict(result)).set_current_organizer(cls)
        if result is None:
            return Context.create(seed).set_current_organizer(cls)

        raise StepConfigurationError(
            f"Producer {step.label!r} must return a Context, a mapping or None, "
            f"got {type(result).__name__}",
            step=step,
        )

    @classmethod
    def run_action_execute(cls, step: Step, seed: dict[str, Any], hooks: HooksArg = None) -> Context:
        sub = Context.create(seed).set_current_organizer(cls)
        step.target.execute(sub, hooks=hooks)
        return sub
