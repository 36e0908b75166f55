"""Flowlight Validation — pydantic-backed rule sets and the validating action."""

from flowlight.validation.base_data import (
    BaseData,
    RuleEvaluator,
    ValidationOutcome,
    build_model,
)
from flowlight.validation.validator_action import ValidatorAction, apply_mapper

__all__ = [
    "BaseData",
    "RuleEvaluator",
    "ValidationOutcome",
    "ValidatorAction",
    "apply_mapper",
    "build_model",
]
