"""Tests for Context — compartments, error merging, status and diagnostics.

Mirrors the lifecycle of a context inside a run: creation with overrides,
fluent mutation, failure signalling and the snapshots runners keep.
"""

import json

import pytest

from flowlight.core.enums import ContextOperation, ContextStatus
from flowlight.core.errors import ContextFailedError, ValidationError
from flowlight.orchestration.action import Action
from flowlight.orchestration.context import (
    ERROR_INFO_KEY,
    Context,
    copy_value,
    qualified_name,
    short_name,
)


class Noop(Action):
    def perform(self, context):
        pass


def _raised(error: Exception) -> Exception:
    try:
        raise error
    except Exception as exc:
        return exc


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------


class TestCreate:
    def test_defaults(self):
        ctx = Context.create()
        assert ctx.input() == {}
        assert ctx.params() == {}
        assert ctx.errors() == {}
        assert ctx.meta() == {"operation": "UPDATE"}
        assert ctx.status is ContextStatus.INCOMPLETE
        assert ctx.aborted is False
        assert ctx.success() is True

    def test_input_is_copied(self):
        data = {"email": "a@b.c"}
        ctx = Context.create(data)
        data["email"] = "changed"
        assert ctx.input() == {"email": "a@b.c"}

    def test_overrides(self):
        ctx = Context.create(
            {"a": 1},
            {
                "params": {"tier": "gold"},
                "resources": {"client": "c"},
                "extra_rules": {"age": int},
                "internal_only": {"trace": 1},
                "meta": {"source": "api"},
                "dotted_omit_rules": ["address.zip"],
                "unknown": "ignored",
            },
        )
        assert ctx.params() == {"tier": "gold"}
        assert ctx.resources() == {"client": "c"}
        assert ctx.extra_rules() == {"age": int}
        assert ctx.internal_only() == {"trace": 1}
        assert ctx.meta() == {"operation": "UPDATE", "source": "api"}
        assert ctx.dotted_omit_rules() == ["address.zip"]

    def test_meta_override_can_set_operation(self):
        ctx = Context.create(overrides={"meta": {"operation": "CREATE"}})
        assert ctx.is_create_operation()

    def test_error_override_aborts(self):
        ctx = Context.create(overrides={"errors": {"name": "is required"}})
        assert ctx.errors() == {"name": ["is required"]}
        assert ctx.aborted is True

    def test_omit_rules_coercion(self):
        assert Context.create(overrides={"dotted_omit_rules": "id"}).dotted_omit_rules() == ["id"]
        assert Context.create(overrides={"dotted_omit_rules": ("a", 1)}).dotted_omit_rules() == ["a", "1"]
        assert Context.create(overrides={"dotted_omit_rules": 5}).dotted_omit_rules() == []
        assert Context.create(overrides={"dotted_omit_rules": None}).dotted_omit_rules() == []


# ---------------------------------------------------------------------------
# Mutators and readers
# ---------------------------------------------------------------------------


class TestMutators:
    def test_shallow_merge(self):
        ctx = Context.create().with_params({"a": {"x": 1}, "b": 2})
        ctx.with_params({"a": {"y": 2}})
        assert ctx.params() == {"a": {"y": 2}, "b": 2}

    def test_empty_values_are_noops(self):
        ctx = Context.create({"a": 1})
        assert ctx.with_inputs({}) is ctx
        ctx.with_meta({}).with_internal_only({}).with_resources({}).with_params({})
        assert ctx.input() == {"a": 1}
        assert ctx.params() == {}

    def test_with_resource_dotted(self):
        ctx = Context.create().with_resource("billing.invoice", {"id": 3})
        assert ctx.resources() == {"billing": {"invoice": {"id": 3}}}
        assert ctx.resource("billing.invoice.id") == 3
        assert ctx.resource("missing", "fallback") == "fallback"

    def test_resource_literal_key(self):
        ctx = Context.create().with_resources({"a.b": 1})
        assert ctx.resource("a.b") == 1


class TestReaders:
    def test_keys_select_with_nulls(self):
        ctx = Context.create({"user": {"email": "a@b.c"}, "id": 7})
        assert ctx.input(["user.email", "missing"]) == {"user.email": "a@b.c", "missing": None}

    def test_single_key(self):
        assert Context.create({"id": 7}).input("id") == {"id": 7}

    def test_readers_return_copies(self):
        ctx = Context.create().with_errors({"name": ["is required"]})
        ctx.errors()["name"].append("mutated")
        ctx.params()["new"] = 1
        assert ctx.errors() == {"name": ["is required"]}
        assert ctx.params() == {}


# ---------------------------------------------------------------------------
# Errors and status
# ---------------------------------------------------------------------------


class TestErrors:
    def test_merge_and_dedupe(self):
        ctx = Context.create()
        ctx.with_errors({"email": ["taken", "invalid"]})
        ctx.with_errors({"email": ["taken", 42], "name": "is required"})
        assert ctx.errors() == {"email": ["taken", "invalid", "42"], "name": ["is required"]}
        assert ctx.failure() is True

    def test_non_mapping_and_empty_are_noops(self):
        ctx = Context.create()
        ctx.with_errors(None).with_errors({}).with_errors(["x"])  # type: ignore[arg-type]
        assert ctx.errors() == {}
        assert ctx.aborted is False

    def test_empty_message_list_is_skipped(self):
        ctx = Context.create().with_errors({"email": []})
        assert ctx.errors() == {}
        assert ctx.success() is True

    def test_add_errors_and_abort(self):
        ctx = Context.create()
        with pytest.raises(ContextFailedError) as exc_info:
            ctx.add_errors_and_abort({"email": ["taken"]})
        assert exc_info.value.pipeline_context is ctx
        assert exc_info.value.errors == {"email": ["taken"]}
        assert ctx.aborted is True

    def test_add_errors_and_abort_without_errors(self):
        ctx = Context.create()
        with pytest.raises(ContextFailedError, match="nothing to do"):
            ctx.add_errors_and_abort({}, message="nothing to do")
        assert ctx.errors() == {"base": ["nothing to do"]}

    def test_abort_without_errors(self):
        ctx = Context.create().abort()
        assert ctx.errors() == {}
        assert ctx.failure() is True

    def test_formatted_errors(self):
        ctx = Context.create().with_errors({"name": ["é"]})
        text = ctx.formatted_errors()
        assert json.loads(text) == {"name": ["é"]}
        assert "é" in text
        assert '\n    "name"' in text


class TestStatusAndOperation:
    def test_mark_complete(self):
        ctx = Context.create().mark_complete()
        assert ctx.status is ContextStatus.COMPLETE
        assert ctx.is_incomplete() is False

    def test_operation_markers(self):
        ctx = Context.create()
        assert ctx.is_update_operation()
        ctx.mark_create_operation()
        assert ctx.operation is ContextOperation.CREATE
        assert ctx.meta()["operation"] == "CREATE"
        ctx.mark_update_operation()
        assert ctx.is_update_operation()

    def test_operation_is_lenient(self):
        assert Context.create(overrides={"meta": {"operation": " create "}}).is_create_operation()
        assert Context.create(overrides={"meta": {"operation": "archive"}}).is_update_operation()


# ---------------------------------------------------------------------------
# Names and diagnostics
# ---------------------------------------------------------------------------


class TestNames:
    def test_qualified_and_short_names(self):
        assert qualified_name(Noop).endswith(".Noop")
        assert qualified_name("billing.Charge") == "billing.Charge"
        assert short_name("billing.Charge") == "Charge"
        assert short_name(None) is None

    def test_current_names(self):
        ctx = Context.create()
        ctx.set_current_organizer("billing.Checkout").set_current_action(Noop)
        assert ctx.current_organizer == "billing.Checkout"
        assert ctx.organizer_name == "Checkout"
        assert ctx.action_name == "Noop"

    def test_invoked_action(self):
        ctx = Context.create()
        action = Noop(ctx)
        assert ctx.invoked_action is action
        assert Context.create().invoked_action is None


class TestDiagnostics:
    def test_record_raised_error(self):
        ctx = Context.create().set_current_organizer("billing.Checkout").set_current_action("billing.Charge")
        ctx.record_raised_error(_raised(ValueError("card declined")))

        info = ctx.internal_only()[ERROR_INFO_KEY]
        assert info["organizer"] == "Checkout"
        assert info["action_name"] == "Charge"
        assert info["type"] == "ValueError"
        assert info["message"] == "card declined"
        assert info["exception"] == "ValueError : card declined"
        assert ctx.error_info.title == "ValueError : card declined"
        assert ctx.errors() == {}

    def test_record_raised_validation_error_merges_fields(self):
        ctx = Context.create()
        ctx.record_raised_error(ValidationError("invalid", field_errors={"email": ["taken"]}))
        assert ctx.errors() == {"email": ["taken"]}

    def test_snapshot_is_by_value(self):
        ctx = Context.create({"a": {"b": 1}}).set_current_action("x.Charge")
        snap = ctx.snapshot()
        ctx.with_inputs({"a": {"b": 2}})
        assert snap["input"] == {"a": {"b": 1}}
        assert snap["label"] == "Charge"
        assert snap["status"] == "INCOMPLETE"
        assert ctx.snapshot("custom")["label"] == "custom"

    def test_last_failed_context(self):
        ctx = Context.create()
        assert ctx.last_failed_context() is None
        ctx.with_errors({"x": ["y"]}).set_last_failed_context(ctx, label="step")
        assert ctx.last_failed_context()["errors"] == {"x": ["y"]}
        assert ctx.last_failed_context()["label"] == "step"

    def test_successful_actions_unique(self):
        ctx = Context.create().add_successful_action("a").add_successful_action("b")
        ctx.add_successful_action("a")
        assert ctx.successful_actions() == ["a", "b"]

    def test_organizer_results(self):
        root = Context.create()
        sub = Context.create({"k": 1}).with_errors({"k": ["bad"]})
        root.add_organizer_result("load", sub)
        sub.with_params({"late": True})
        (result,) = root.organizer_results()
        assert result["label"] == "load"
        assert result["success"] is False
        assert result["params"] == {}


# ---------------------------------------------------------------------------
# Copy and serialization
# ---------------------------------------------------------------------------


class TestCopy:
    def test_copy_is_independent(self):
        ctx = Context.create({"a": {"b": [1]}}).with_errors({"x": ["y"]})
        other = ctx.copy()
        other.with_errors({"x": ["z"]})
        other.input()["a"]["b"].append(2)
        assert ctx.errors() == {"x": ["y"]}
        assert ctx.input() == {"a": {"b": [1]}}
        assert other.aborted is True

    def test_copy_value_shares_leaves(self):
        leaf = object()
        copied = copy_value({"a": [leaf]})
        assert copied["a"][0] is leaf


class TestSerialization:
    def test_to_dict(self):
        ctx = Context.create({"a": 1}).set_current_organizer("x.Org").mark_complete()
        data = ctx.to_dict()
        assert data["input"] == {"a": 1}
        assert data["status"] == "COMPLETE"
        assert data["aborted"] is False
        assert data["organizer"] == "x.Org"
        assert data["action"] is None

    def test_repr(self):
        ctx = Context.create().set_current_organizer("x.Org").with_errors({"a": ["b"]})
        assert repr(ctx) == "Context(status=INCOMPLETE, organizer='Org', action=None, errors=['a'])"
