"""
Flowlight - business-pipeline orchestration.

Compose units of work (``Action``) into ordered pipelines (``Organizer``)
and two-phase pipelines (``Orchestrator``) that share one mutable
``Context`` and stop at the first failure.

    from flowlight import Action, Organizer, Step

    class Greet(Action):
        def perform(self, ctx):
            ctx.with_params({"greeting": f"hello {ctx.input()['name']}"})

    class Welcome(Organizer):
        @classmethod
        def steps(cls):
            return [Step.action(Greet)]

    Welcome.call({"name": "ada"}).params()   # {"greeting": "hello ada"}
"""

__version__ = "0.1.0"

from flowlight.core.enums import ContextOperation, ContextStatus
from flowlight.core.errors import ContextFailedError, FlowlightConfigError, FlowlightError
from flowlight.orchestration import (
    Action,
    ActionHooks,
    ActionState,
    Context,
    HookRegistry,
    MapperContractError,
    Orchestrator,
    Organizer,
    Step,
    StepConfigurationError,
    StepKind,
    with_error_handler,
)

__all__ = [
    "Action",
    "ActionHooks",
    "ActionState",
    "Context",
    "ContextFailedError",
    "ContextOperation",
    "ContextStatus",
    "FlowlightConfigError",
    "FlowlightError",
    "HookRegistry",
    "MapperContractError",
    "Orchestrator",
    "Organizer",
    "Step",
    "StepConfigurationError",
    "StepKind",
    "with_error_handler",
]
