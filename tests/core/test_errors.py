"""Tests for flowlight.core.errors module."""

import pytest

from flowlight.core.errors import (
    ContextFailedError,
    ErrorCategory,
    ErrorContext,
    FlowlightConfigError,
    FlowlightError,
    ValidationError,
    categorize_error,
    is_config_error,
)
from flowlight.orchestration.context import Context
from flowlight.orchestration.exceptions import MapperContractError, StepConfigurationError


class TestErrorContext:
    """Test ErrorContext dataclass."""

    def test_create_empty_context(self):
        ctx = ErrorContext()
        assert ctx.organizer is None
        assert ctx.action is None
        assert ctx.metadata == {}
        assert ctx.to_dict() == {}

    def test_to_dict_skips_none_and_merges_metadata(self):
        ctx = ErrorContext(organizer="CreateUser", step="validate", metadata={"attempt": 2})
        assert ctx.to_dict() == {"organizer": "CreateUser", "step": "validate", "attempt": 2}


class TestFlowlightError:
    """Test the base error."""

    def test_default_category(self):
        error = FlowlightError("boom")
        assert error.category == ErrorCategory.INTERNAL
        assert str(error) == "boom"

    def test_explicit_category(self):
        error = FlowlightError("boom", category=ErrorCategory.VALIDATION)
        assert error.category == ErrorCategory.VALIDATION

    def test_with_context_is_fluent(self):
        error = FlowlightError("boom").with_context(organizer="CreateUser", request_id="r1")
        assert error.context.organizer == "CreateUser"
        assert error.context.metadata == {"request_id": "r1"}

    def test_cause_is_chained(self):
        cause = KeyError("missing")
        error = FlowlightError("lookup failed", cause=cause)
        assert error.cause is cause
        assert error.__cause__ is cause

    def test_to_dict(self):
        error = FlowlightError("boom", cause=ValueError("inner")).with_context(action="Charge")
        assert error.to_dict() == {
            "error_type": "FlowlightError",
            "message": "boom",
            "category": "INTERNAL",
            "context": {"action": "Charge"},
            "cause": "inner",
        }

    def test_repr(self):
        assert repr(FlowlightError("boom")) == "FlowlightError('boom', category=INTERNAL)"


class TestSubclasses:
    def test_config_errors(self):
        assert FlowlightConfigError("x").category == ErrorCategory.CONFIG
        assert isinstance(StepConfigurationError("x"), FlowlightConfigError)
        assert isinstance(MapperContractError("x"), FlowlightConfigError)

    def test_validation_error_copies_field_errors(self):
        error = ValidationError("invalid", field_errors={"email": ["taken"]})
        copy = error.errors()
        copy["email"].append("mutated")
        assert error.errors() == {"email": ["taken"]}
        assert error.to_dict()["field_errors"] == {"email": ["taken"]}
        assert error.category == ErrorCategory.VALIDATION


class TestContextFailedError:
    def test_default_message_and_errors(self):
        ctx = Context.create().with_errors({"name": ["is required"]})
        error = ContextFailedError(ctx)
        assert error.message == "Flowlight context failed."
        assert error.pipeline_context is ctx
        assert error.errors == {"name": ["is required"]}
        assert error.category == ErrorCategory.PIPELINE

    def test_errors_are_a_snapshot(self):
        ctx = Context.create().with_errors({"name": ["is required"]})
        error = ContextFailedError(ctx, "custom")
        ctx.with_errors({"email": ["taken"]})
        assert error.message == "custom"
        assert "email" not in error.errors
        assert error.to_dict()["errors"] == {"name": ["is required"]}


class TestCategorize:
    @pytest.mark.parametrize(
        ("error", "expected"),
        [
            (FlowlightConfigError("x"), ErrorCategory.CONFIG),
            (TypeError("x"), ErrorCategory.CONFIG),
            (AttributeError("x"), ErrorCategory.CONFIG),
            (ValueError("x"), ErrorCategory.VALIDATION),
            (RuntimeError("x"), ErrorCategory.UNKNOWN),
        ],
    )
    def test_categorize_error(self, error, expected):
        assert categorize_error(error) == expected

    def test_is_config_error(self):
        assert is_config_error(StepConfigurationError("x")) is True
        assert is_config_error(TypeError("x")) is False
