"""Step Types — the tagged union organizers and orchestrators run.

Manifesto:
An organizer is a list of steps, and the runner must know what each step
is without guessing.  The pipeline author says so when declaring it:
``Step.action(ChargeCard)`` or ``Step.inline(fn)``.  The factory checks
that the target fits the kind right there, so a malformed pipeline fails
when it is defined instead of halfway through a run.

ARCHITECTURE
────────────
::

    Step
      ├── .action(ActionCls)        ── ACTION     main phase / pre-phase (execute)
      ├── .inline(fn)               ── INLINE     main phase, fn(ctx)
      ├── .producer(fn)             ── PRODUCER   pre-phase, fn(input) -> Context | dict | None
      └── .organizer(OrganizerCls)  ── ORGANIZER  pre-phase, OrganizerCls.call(input)

    StepKind   ── enum: ACTION, INLINE, PRODUCER, ORGANIZER

Example::

    class CreateUser(Organizer):
        @classmethod
        def steps(cls):
            return [
                Step.action(ValidateUser),
                Step.inline(lambda ctx: ctx.with_meta({"source": "api"}), label="tag_source"),
                Step.action(PersistUser),
            ]

Tags:
    flowlight, orchestration, step-types, tagged-union

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from flowlight.orchestration.context import qualified_name, short_name
from flowlight.orchestration.exceptions import StepConfigurationError


class StepKind(str, Enum):
    """What a step's target is."""

    ACTION = "action"  # Action subclass, run via execute()
    INLINE = "inline"  # fn(ctx), main phase only
    PRODUCER = "producer"  # fn(input) -> Context | dict | None, pre-phase only
    ORGANIZER = "organizer"  # Organizer subclass, run via call(), pre-phase only


MAIN_PHASE_KINDS = frozenset({StepKind.ACTION, StepKind.INLINE})
PRE_PHASE_KINDS = frozenset({StepKind.ACTION, StepKind.PRODUCER, StepKind.ORGANIZER})


def callable_label(fn: Callable[..., Any]) -> str:
    """Short label for a callable; lambdas are labelled ``callable``."""
    name = getattr(fn, "__name__", None)
    if name is None:
        return type(fn).__name__
    if name == "<lambda>":
        return "callable"
    return name


@dataclass(frozen=True)
class Step:
    """
    A single declared step.

    Use the factory methods; they validate the target for its kind.

    Attributes:
        kind: What ``target`` is
        target: Action/Organizer class or a callable
        label: Name recorded in the audit trail and failure snapshots
    """

    kind: StepKind
    target: Any
    label: str

    # =========================================================================
    # Factory Methods
    # =========================================================================

    @classmethod
    def action(cls, action_cls: type, label: str | None = None) -> Step:
        """
        Create a step that runs an Action subclass.

        Raises:
            StepConfigurationError: If ``action_cls`` is not an Action subclass.
        """
        from flowlight.orchestration.action import Action

        if not (isinstance(action_cls, type) and issubclass(action_cls, Action)):
            raise StepConfigurationError(
                f"Step.action() requires an Action subclass, got {action_cls!r}",
                step=action_cls,
            )
        return cls(StepKind.ACTION, action_cls, label or action_cls.__name__)

    @classmethod
    def inline(cls, fn: Callable[..., Any], label: str | None = None) -> Step:
        """Create a step that calls ``fn(ctx)`` directly."""
        if not callable(fn) or isinstance(fn, type):
            raise StepConfigurationError(
                f"Step.inline() requires a callable(ctx), got {fn!r}", step=fn
            )
        return cls(StepKind.INLINE, fn, label or callable_label(fn))

    @classmethod
    def producer(cls, fn: Callable[..., Any], label: str | None = None) -> Step:
        """Create a pre-phase step that builds a context from the orchestrator input."""
        if not callable(fn) or isinstance(fn, type):
            raise StepConfigurationError(
                f"Step.producer() requires a callable(input), got {fn!r}", step=fn
            )
        return cls(StepKind.PRODUCER, fn, label or callable_label(fn))

    @classmethod
    def organizer(cls, organizer_cls: type, label: str | None = None) -> Step:
        """
        Create a pre-phase step that delegates to another organizer.

        Raises:
            StepConfigurationError: If ``organizer_cls`` is not an Organizer subclass.
        """
        from flowlight.orchestration.organizer import Organizer

        if not (isinstance(organizer_cls, type) and issubclass(organizer_cls, Organizer)):
            raise StepConfigurationError(
                f"Step.organizer() requires an Organizer subclass, got {organizer_cls!r}",
                step=organizer_cls,
            )
        return cls(StepKind.ORGANIZER, organizer_cls, label or organizer_cls.__name__)

    # =========================================================================
    # Utilities
    # =========================================================================

    @property
    def qualified_name(self) -> str:
        """Qualified name of a class target, else the label."""
        if isinstance(self.target, type):
            return qualified_name(self.target)
        return self.label

    @property
    def short_name(self) -> str:
        return short_name(self.qualified_name) or self.label

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "label": self.label,
            "target": self.qualified_name,
        }

    def __repr__(self) -> str:
        return f"Step.{self.kind.value}({self.label!r})"


def ensure_step(step: Any, allowed: frozenset[StepKind], phase: str) -> Step:
    """Return ``step`` if it may run in ``phase``, else raise."""
    if not isinstance(step, Step):
        raise StepConfigurationError(
            f"{phase} steps must be declared with Step factories, got {step!r}",
            step=step,
        )
    if step.kind not in allowed:
        raise StepConfigurationError(
            f"{step.kind.value} steps cannot run in the {phase}", step=step
        )
    return step
