"""
Flowlight Orchestration — contexts, actions and the runners that sequence them.

ARCHITECTURE
────────────
::

    Context            ─ shared mutable state for one run
    Action             ─ unit of work (before → perform → after → success/failure)
    Step               ─ tagged union: action / inline / producer / organizer
    Organizer          ─ runs steps in order, stops at the first failure
    Orchestrator       ─ pre-phase of delegated steps, then Organizer main phase
    with_error_handler ─ converts unexpected exceptions into context failure
    ActionHooks / HookRegistry ─ lifecycle hooks passed per run

MODULE MAP (recommended reading order)
──────────────────────────────────────
1. exceptions.py      ─ configuration errors
2. context.py         ─ Context
3. hooks.py           ─ ActionHooks, HookRegistry
4. action.py          ─ Action, ActionState
5. step_types.py      ─ Step, StepKind
6. error_handler.py   ─ with_error_handler
7. organizer.py       ─ Organizer
8. orchestrator.py    ─ Orchestrator
"""

from flowlight.orchestration.action import Action, ActionState
from flowlight.orchestration.context import Context
from flowlight.orchestration.error_handler import capture_exception_into_context, with_error_handler
from flowlight.orchestration.exceptions import MapperContractError, StepConfigurationError
from flowlight.orchestration.hooks import ActionHooks, HookRegistry
from flowlight.orchestration.orchestrator import ACTION_PROC_KEY, Orchestrator
from flowlight.orchestration.organizer import ALL_ACTIONS_COMPLETE_KEY, Organizer
from flowlight.orchestration.step_types import Step, StepKind

__all__ = [
    "ACTION_PROC_KEY",
    "ALL_ACTIONS_COMPLETE_KEY",
    "Action",
    "ActionHooks",
    "ActionState",
    "Context",
    "HookRegistry",
    "MapperContractError",
    "Orchestrator",
    "Organizer",
    "Step",
    "StepConfigurationError",
    "StepKind",
    "capture_exception_into_context",
    "with_error_handler",
]
