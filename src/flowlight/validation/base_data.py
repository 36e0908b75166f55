"""Rule sets built from pydantic field definitions.

A ``BaseData`` subclass declares its rules as a mapping of field name to a
pydantic field definition.  Nested mappings describe nested objects, and dotted
keys are accepted as shorthand for nesting::

    class UserData(BaseData):
        @classmethod
        def rules(cls):
            return {
                "id": (int, ...),
                "email": (str, Field(min_length=3)),
                "age": (int | None, Field(default=None, ge=0)),
                "address": {"city": (str, ...), "zip": (str, None)},
            }

Per run, the rule set is adjusted before validation:

1. extra rules from the context are merged over the base rules (top level)
2. dotted omit rules remove fields (``"address.zip"``) on every operation
3. on CREATE, ``id`` and ``uuid`` are dropped

``BaseData.evaluate`` is the pydantic implementation of the
:class:`RuleEvaluator` contract used by ``ValidatorAction``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

import pydantic
from pydantic import BaseModel, ConfigDict, create_model
from pydantic.fields import FieldInfo

from flowlight.core.enums import ContextOperation
from flowlight.core.error_info import field_errors_of
from flowlight.core.errors import ValidationError
from flowlight.core.paths import normalize_key_list, omit

IDENTIFIER_FIELDS = ("id", "uuid")


@dataclass(frozen=True)
class ValidationOutcome:
    """Result of evaluating a payload against a rule set."""

    passed: bool
    errors: dict[str, list[str]] = field(default_factory=dict)
    validated: dict[str, Any] = field(default_factory=dict)

    def raise_for_errors(self) -> None:
        """Raise :class:`ValidationError` carrying the field errors, if any."""
        if not self.passed:
            raise ValidationError("Validation failed", field_errors=self.errors)


@runtime_checkable
class RuleEvaluator(Protocol):
    """Anything that can validate a payload for a pipeline run."""

    def evaluate(
        self,
        payload: Mapping[str, Any],
        extra_rules: Mapping[str, Any] | None = None,
        dotted_omit_rules: Iterable[str] | str | None = None,
        operation: ContextOperation | str = ContextOperation.UPDATE,
    ) -> ValidationOutcome: ...


class _PayloadBase(BaseModel):
    model_config = ConfigDict(extra="ignore")


def _field_definition(name: str, rule: Any, model_name: str) -> tuple[Any, Any]:
    if isinstance(rule, Mapping):
        nested = build_model(rule, f"{model_name}_{name}")
        return (nested, ...)
    if isinstance(rule, tuple) and len(rule) == 2:
        return rule
    if isinstance(rule, FieldInfo):
        return (Any, rule)
    return (rule, ...)


def build_model(rules: Mapping[str, Any], model_name: str = "Payload") -> type[BaseModel]:
    """Create a pydantic model from a (nested) rule mapping."""
    definitions = {
        name: _field_definition(name, rule, model_name)
        for name, rule in rules.items()
    }
    return create_model(model_name, __base__=_PayloadBase, **definitions)


class BaseData:
    """Base rule set.  Subclasses override :meth:`rules`."""

    @classmethod
    def rules(cls) -> dict[str, Any]:
        return {}

    @classmethod
    def rules_for_operation(
        cls,
        extra_rules: Mapping[str, Any] | None = None,
        dotted_omit_rules: Iterable[str] | str | None = None,
        operation: ContextOperation | str = ContextOperation.UPDATE,
    ) -> dict[str, Any]:
        """Base rules adjusted for one run (see module docstring)."""
        merged = {**cls.rules(), **dict(extra_rules or {})}

        omit_keys = normalize_key_list(dotted_omit_rules) or []
        # omit() also re-nests dotted rule keys
        adjusted = omit(merged, omit_keys)

        if ContextOperation.parse(operation) is ContextOperation.CREATE:
            for name in IDENTIFIER_FIELDS:
                adjusted.pop(name, None)
        return adjusted

    @classmethod
    def model_for(
        cls,
        extra_rules: Mapping[str, Any] | None = None,
        dotted_omit_rules: Iterable[str] | str | None = None,
        operation: ContextOperation | str = ContextOperation.UPDATE,
    ) -> type[BaseModel]:
        rules = cls.rules_for_operation(extra_rules, dotted_omit_rules, operation)
        return build_model(rules, f"{cls.__name__}Payload")

    @classmethod
    def evaluate(
        cls,
        payload: Mapping[str, Any],
        extra_rules: Mapping[str, Any] | None = None,
        dotted_omit_rules: Iterable[str] | str | None = None,
        operation: ContextOperation | str = ContextOperation.UPDATE,
    ) -> ValidationOutcome:
        """
        Validate ``payload``.

        Returns:
            ``ValidationOutcome``; ``validated`` holds only the fields that
            have rules and were present in the payload.
        """
        model = cls.model_for(extra_rules, dotted_omit_rules, operation)
        try:
            instance = model.model_validate(dict(payload))
        except pydantic.ValidationError as exc:
            return ValidationOutcome(passed=False, errors=field_errors_of(exc) or {})
        return ValidationOutcome(passed=True, validated=instance.model_dump(exclude_unset=True))
