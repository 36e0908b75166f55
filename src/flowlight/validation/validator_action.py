"""ValidatorAction - an Action that validates input into params.

Flow inside ``perform``::

    input ─ before_validation_mapper ─▶ payload
    payload ─ data_class.evaluate(payload, extra_rules, dotted_omit_rules, operation)
        fail    → ctx.with_errors(outcome.errors)           (stop)
        pass    → {**payload, **validated} ─ after_validation_mapper ─▶ ctx.with_params

A mapper is either a callable ``fn(data)`` or an object/class exposing
``map_from(data)``.  It must return a mapping; anything else raises
:class:`~flowlight.orchestration.exceptions.MapperContractError`.

Example::

    class ValidateUser(ValidatorAction):
        data_class = UserData

        @classmethod
        def after_validation_mapper(cls):
            return lambda data: {**data, "email": data["email"].lower()}

    ctx = ValidateUser.execute_for_create_operation(Context.create(payload))
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar

from flowlight.core.errors import FlowlightConfigError
from flowlight.core.logging import get_logger
from flowlight.orchestration.action import Action
from flowlight.orchestration.context import Context
from flowlight.orchestration.exceptions import MapperContractError
from flowlight.orchestration.hooks import HooksArg
from flowlight.validation.base_data import RuleEvaluator

logger = get_logger(__name__)


def apply_mapper(mapper: Any, data: Any) -> dict[str, Any]:
    """
    Run a mapper and enforce that it returns a mapping.

    ``None`` is the identity mapper and requires ``data`` itself to be a
    mapping.
    """
    if mapper is None:
        if isinstance(data, Mapping):
            return dict(data)
        raise MapperContractError.wrong_return(apply_mapper, data)

    map_from = getattr(mapper, "map_from", None)
    if callable(map_from):
        out = map_from(data)
    elif callable(mapper):
        out = mapper(data)
    else:
        raise MapperContractError(
            f"Mapper must be callable or define map_from(data), got {mapper!r}",
            mapper=mapper,
        )

    if not isinstance(out, Mapping):
        raise MapperContractError.wrong_return(mapper, out)
    return dict(out)


class ValidatorAction(Action):
    """
    Validate ``ctx.input()`` with ``data_class`` and store the result in params.

    Subclasses set ``data_class`` to a ``BaseData`` subclass or any other
    :class:`RuleEvaluator`.
    """

    data_class: ClassVar[Any] = None

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if cls.data_class is not None and not isinstance(cls.data_class, RuleEvaluator):
            raise FlowlightConfigError(
                f"{cls.__name__}.data_class must provide evaluate(), got {cls.data_class!r}"
            )

    @classmethod
    def before_validation_mapper(cls) -> Any:
        return None

    @classmethod
    def after_validation_mapper(cls) -> Any:
        return None

    @classmethod
    def execute_for_create_operation(cls, ctx: Context, hooks: HooksArg = None) -> Context:
        return cls.execute(ctx.mark_create_operation(), hooks=hooks)

    @classmethod
    def execute_for_update_operation(cls, ctx: Context, hooks: HooksArg = None) -> Context:
        return cls.execute(ctx.mark_update_operation(), hooks=hooks)

    def perform(self, context: Context) -> None:
        evaluator = type(self).data_class
        if evaluator is None:
            raise FlowlightConfigError(f"{type(self).__name__} does not declare a data_class")

        payload = apply_mapper(self.before_validation_mapper(), context.input())
        outcome = evaluator.evaluate(
            payload,
            context.extra_rules(),
            context.dotted_omit_rules(),
            context.operation,
        )

        if not outcome.passed:
            logger.debug(
                "validator.failed",
                action=type(self).__name__,
                fields=sorted(outcome.errors),
            )
            context.with_errors(outcome.errors)
            return

        params = {**payload, **outcome.validated}
        context.with_params(apply_mapper(self.after_validation_mapper(), params))
