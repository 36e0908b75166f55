"""
Context - the mutable state value threaded through a pipeline run.

One ``Context`` is created per organizer or orchestrator invocation.  Every
step reads from it and writes to it; runners inspect it between steps and
stop as soon as it reports failure.

Design Principles:
- Owned value: a context belongs to the call chain that created it
- Shallow merges: ``with_*`` mutators overwrite top-level keys only
- Monotonic flags: ``COMPLETE`` and ``aborted`` are never reverted
- Copies out: readers return copies, so callers cannot alias internals

Example:
    from flowlight.orchestration import Context

    ctx = Context.create({"email": "a@b.c"}, {"params": {"tier": "gold"}})
    ctx.with_errors({"email": ["is taken"]})
    ctx.failure()            # True
    ctx.input(["email"])     # {"email": "a@b.c"}

Manifesto:
    Business steps should not need to know about each other.  They share
    one namespace with clear compartments (input, params, resources, meta)
    and one failure signal (errors + aborted) that every runner respects.

Tags:
    flowlight, orchestration, context, shared-state

Doc-Types:
    api-reference
"""

from __future__ import annotations

import json
import weakref
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from flowlight.core.enums import ContextOperation, ContextStatus
from flowlight.core.error_info import ErrorInfo, field_errors_of
from flowlight.core.errors import ContextFailedError
from flowlight.core.paths import get_path, normalize_key_list, select_or_null, set_path
from flowlight.core.strings import stringify

if TYPE_CHECKING:
    from flowlight.orchestration.action import Action

# internal_only keys written by the engine
ERROR_INFO_KEY = "error_info"
LAST_FAILED_CONTEXT_KEY = "last_failed_context"
SUCCESSFUL_ACTIONS_KEY = "successful_actions"
ORGANIZER_RESULTS_KEY = "organizer_results"

_OVERRIDE_FIELDS = {
    "params": "_params",
    "resources": "_resources",
    "extra_rules": "_extra_rules",
    "internal_only": "_internal_only",
}

_MISSING = object()


def qualified_name(target: Any) -> str:
    """``module.QualName`` for classes and functions; strings pass through."""
    if isinstance(target, str):
        return target
    if not isinstance(target, type) and not callable(target):
        target = type(target)
    module = getattr(target, "__module__", None)
    qualname = getattr(target, "__qualname__", None) or type(target).__qualname__
    return f"{module}.{qualname}" if module else qualname


def short_name(name: str | None) -> str | None:
    """Last dotted segment of a qualified name."""
    if not name:
        return None
    return name.rsplit(".", 1)[-1]


def copy_value(value: Any) -> Any:
    """Copy nested dicts and lists; any other value is shared."""
    if isinstance(value, Mapping):
        return {key: copy_value(item) for key, item in value.items()}
    if isinstance(value, list):
        return [copy_value(item) for item in value]
    return value


def _as_dict(value: Any) -> dict[str, Any]:
    if isinstance(value, Mapping):
        return dict(value)
    return {}


def _coerce_omit_rules(value: Any) -> list[str]:
    if value is None or isinstance(value, (str, list, tuple)):
        return normalize_key_list(value) or []
    return []


class Context:
    """
    Shared state for one pipeline run.

    Compartments:
        input: Caller-supplied data (treat as read-only in steps)
        params: Values derived by steps (validated data, computed ids)
        resources: Objects produced by steps (records, clients, results)
        meta: Run metadata (``operation``, ``all_actions_complete``)
        extra_rules: Additional validation rules for this run
        internal_only: Engine diagnostics (error info, audit trail, snapshots)

    Use :meth:`create` rather than the constructor.
    """

    def __init__(self) -> None:
        self._input: dict[str, Any] = {}
        self._params: dict[str, Any] = {}
        self._errors: dict[str, list[str]] = {}
        self._resources: dict[str, Any] = {}
        self._meta: dict[str, Any] = {"operation": ContextOperation.UPDATE.value}
        self._extra_rules: dict[str, Any] = {}
        self._internal_only: dict[str, Any] = {}
        self._dotted_omit_rules: list[str] = []
        self._status = ContextStatus.INCOMPLETE
        self._aborted = False
        self._current_organizer: str | None = None
        self._current_action: str | None = None
        self._invoked_action: weakref.ReferenceType[Action] | None = None
        self._error_info: ErrorInfo | None = None

    # =========================================================================
    # Factories
    # =========================================================================

    @classmethod
    def create(
        cls,
        input: Mapping[str, Any] | None = None,
        overrides: Mapping[str, Any] | None = None,
    ) -> Context:
        """
        Build a context from input and optional overrides.

        Recognised override keys: ``params``, ``errors``, ``resources``,
        ``extra_rules``, ``internal_only``, ``meta``, ``dotted_omit_rules``.
        Anything else is ignored.  ``meta`` is merged over the default
        ``{"operation": "UPDATE"}``.
        """
        ctx = cls()
        ctx._input = _as_dict(input)
        overrides = overrides or {}

        for key, attr in _OVERRIDE_FIELDS.items():
            if key in overrides:
                setattr(ctx, attr, _as_dict(overrides[key]))

        if "meta" in overrides:
            ctx._meta.update(_as_dict(overrides["meta"]))
        if "dotted_omit_rules" in overrides:
            ctx._dotted_omit_rules = _coerce_omit_rules(overrides["dotted_omit_rules"])
        if "errors" in overrides:
            ctx.with_errors(overrides["errors"])

        return ctx

    def copy(self) -> Context:
        """Independent copy (nested dicts and lists copied, other values shared)."""
        other = Context()
        other._input = copy_value(self._input)
        other._params = copy_value(self._params)
        other._errors = copy_value(self._errors)
        other._resources = copy_value(self._resources)
        other._meta = copy_value(self._meta)
        other._extra_rules = copy_value(self._extra_rules)
        other._internal_only = copy_value(self._internal_only)
        other._dotted_omit_rules = list(self._dotted_omit_rules)
        other._status = self._status
        other._aborted = self._aborted
        other._current_organizer = self._current_organizer
        other._current_action = self._current_action
        other._invoked_action = self._invoked_action
        other._error_info = self._error_info
        return other

    # =========================================================================
    # Mutators (fluent)
    # =========================================================================

    def with_inputs(self, values: Mapping[str, Any]) -> Context:
        if values:
            self._input.update(values)
        return self

    def with_params(self, values: Mapping[str, Any]) -> Context:
        if values:
            self._params.update(values)
        return self

    def with_meta(self, values: Mapping[str, Any]) -> Context:
        if values:
            self._meta.update(values)
        return self

    def with_internal_only(self, values: Mapping[str, Any]) -> Context:
        if values:
            self._internal_only.update(values)
        return self

    def with_resources(self, values: Mapping[str, Any]) -> Context:
        if values:
            self._resources.update(values)
        return self

    def with_resource(self, key: str, value: Any) -> Context:
        """Write one resource at a dotted path, creating intermediate dicts."""
        set_path(self._resources, key, value)
        return self

    def with_errors(self, errors: Mapping[str, Any] | None) -> Context:
        """
        Merge field errors.

        Messages are stringified and de-duplicated per field in first-seen
        order.  A single message may be passed instead of a list.  Any
        resulting error marks the context aborted; an empty mapping changes
        nothing.
        """
        if not isinstance(errors, Mapping) or not errors:
            return self

        for field, messages in errors.items():
            incoming = list(messages) if isinstance(messages, (list, tuple)) else [messages]
            if not incoming:
                continue
            merged = self._errors.setdefault(str(field), [])
            for message in incoming:
                text = stringify(message)
                if text not in merged:
                    merged.append(text)

        if self._errors:
            self._aborted = True
        return self

    def add_errors_and_abort(
        self,
        errors: Mapping[str, Any] | None,
        message: str = "Context failed due to validation or business errors.",
    ) -> None:
        """
        Merge errors, abort, and raise :class:`ContextFailedError`.

        When neither the incoming nor the existing errors contain anything,
        ``message`` is recorded under ``base``.
        """
        self.with_errors(errors)
        if not self._errors:
            self.with_errors({"base": [message]})
        self.abort()
        raise ContextFailedError(self, message)

    def with_invoked_action(self, action: Action) -> Context:
        self._invoked_action = weakref.ref(action)
        return self

    def set_current_organizer(self, organizer: str | type) -> Context:
        self._current_organizer = qualified_name(organizer)
        return self

    def set_current_action(self, action: str | type) -> Context:
        self._current_action = qualified_name(action)
        return self

    # =========================================================================
    # Status
    # =========================================================================

    def mark_complete(self) -> Context:
        self._status = ContextStatus.COMPLETE
        return self

    def abort(self) -> Context:
        """Flag the run as aborted without recording an error."""
        self._aborted = True
        return self

    @property
    def status(self) -> ContextStatus:
        return self._status

    @property
    def aborted(self) -> bool:
        return self._aborted

    def is_incomplete(self) -> bool:
        return self._status is ContextStatus.INCOMPLETE

    def success(self) -> bool:
        return not self.failure()

    def failure(self) -> bool:
        return self._aborted or bool(self._errors)

    # =========================================================================
    # Operation
    # =========================================================================

    @property
    def operation(self) -> ContextOperation:
        """Current operation; unknown values read as UPDATE."""
        return ContextOperation.parse(self._meta.get("operation")) or ContextOperation.UPDATE

    def mark_create_operation(self) -> Context:
        self._meta["operation"] = ContextOperation.CREATE.value
        return self

    def mark_update_operation(self) -> Context:
        self._meta["operation"] = ContextOperation.UPDATE.value
        return self

    def is_create_operation(self) -> bool:
        return self.operation is ContextOperation.CREATE

    def is_update_operation(self) -> bool:
        return self.operation is ContextOperation.UPDATE

    # =========================================================================
    # Readers
    # =========================================================================

    def input(self, keys: Iterable[str] | None = None) -> dict[str, Any]:
        return self._view(self._input, keys)

    def params(self, keys: Iterable[str] | None = None) -> dict[str, Any]:
        return self._view(self._params, keys)

    def errors(self, keys: Iterable[str] | None = None) -> dict[str, Any]:
        return self._view(copy_value(self._errors), keys)

    def resources(self, keys: Iterable[str] | None = None) -> dict[str, Any]:
        return self._view(self._resources, keys)

    def meta(self, keys: Iterable[str] | None = None) -> dict[str, Any]:
        return self._view(self._meta, keys)

    def extra_rules(self, keys: Iterable[str] | None = None) -> dict[str, Any]:
        return self._view(self._extra_rules, keys)

    def internal_only(self, keys: Iterable[str] | None = None) -> dict[str, Any]:
        return self._view(self._internal_only, keys)

    def dotted_omit_rules(self) -> list[str]:
        return list(self._dotted_omit_rules)

    def resource(self, key: str, default: Any = None) -> Any:
        """Dotted read of a single resource."""
        value = get_path(self._resources, key, _MISSING)
        if value is _MISSING:
            return self._resources.get(key, default)
        return value

    @staticmethod
    def _view(source: dict[str, Any], keys: Iterable[str] | None) -> dict[str, Any]:
        if keys is None:
            return dict(source)
        if isinstance(keys, str):
            keys = [keys]
        return select_or_null(source, keys)

    # =========================================================================
    # Names
    # =========================================================================

    @property
    def current_organizer(self) -> str | None:
        return self._current_organizer

    @property
    def current_action(self) -> str | None:
        return self._current_action

    @property
    def organizer_name(self) -> str | None:
        return short_name(self._current_organizer)

    @property
    def action_name(self) -> str | None:
        return short_name(self._current_action)

    @property
    def invoked_action(self) -> Action | None:
        """The last Action that ran against this context, if still alive."""
        if self._invoked_action is None:
            return None
        return self._invoked_action()

    # =========================================================================
    # Diagnostics
    # =========================================================================

    @property
    def error_info(self) -> ErrorInfo | None:
        return self._error_info

    def record_raised_error(self, error: BaseException) -> Context:
        """
        Capture a raised exception.

        Field errors exposed by the exception are merged via
        :meth:`with_errors`; a structured summary is stored under
        ``internal_only["error_info"]``.
        """
        field_errors = field_errors_of(error)
        if field_errors:
            self.with_errors(field_errors)

        info = ErrorInfo(error)
        self._error_info = info
        self._internal_only[ERROR_INFO_KEY] = {
            "organizer": self.organizer_name,
            "action_name": self.action_name,
            **info.to_dict(),
        }
        return self

    def snapshot(self, label: str | None = None) -> dict[str, Any]:
        """By-value view of the state used in failure diagnostics."""
        return {
            "label": label if label is not None else self.action_name,
            "input": copy_value(self._input),
            "params": copy_value(self._params),
            "meta": copy_value(self._meta),
            "errors": copy_value(self._errors),
            "resources": copy_value(self._resources),
            "status": self._status.value,
        }

    def set_last_failed_context(self, source: Context, label: str | None = None) -> Context:
        self._internal_only[LAST_FAILED_CONTEXT_KEY] = source.snapshot(label)
        return self

    def last_failed_context(self) -> dict[str, Any] | None:
        value = self._internal_only.get(LAST_FAILED_CONTEXT_KEY)
        return value if isinstance(value, dict) else None

    def add_successful_action(self, label: str) -> Context:
        trail = list(self._internal_only.get(SUCCESSFUL_ACTIONS_KEY) or [])
        if label not in trail:
            trail.append(label)
        self._internal_only[SUCCESSFUL_ACTIONS_KEY] = trail
        return self

    def successful_actions(self) -> list[str]:
        return list(self._internal_only.get(SUCCESSFUL_ACTIONS_KEY) or [])

    def add_organizer_result(self, label: str, sub_context: Context) -> Context:
        """Append a by-value summary of a pre-phase sub-context."""
        summary = sub_context.snapshot(label)
        summary["success"] = sub_context.success()
        results = list(self._internal_only.get(ORGANIZER_RESULTS_KEY) or [])
        results.append(summary)
        self._internal_only[ORGANIZER_RESULTS_KEY] = results
        return self

    def organizer_results(self) -> list[dict[str, Any]]:
        return list(self._internal_only.get(ORGANIZER_RESULTS_KEY) or [])

    def formatted_errors(self) -> str:
        """Errors as indented JSON."""
        return json.dumps(self._errors, indent=4, ensure_ascii=False)

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        return {
            "input": copy_value(self._input),
            "params": copy_value(self._params),
            "errors": copy_value(self._errors),
            "resources": copy_value(self._resources),
            "meta": copy_value(self._meta),
            "extra_rules": copy_value(self._extra_rules),
            "dotted_omit_rules": list(self._dotted_omit_rules),
            "internal_only": copy_value(self._internal_only),
            "status": self._status.value,
            "aborted": self._aborted,
            "organizer": self._current_organizer,
            "action": self._current_action,
        }

    def __repr__(self) -> str:
        return (
            f"Context(status={self._status.value}, "
            f"organizer={self.organizer_name!r}, "
            f"action={self.action_name!r}, "
            f"errors={list(self._errors)})"
        )
