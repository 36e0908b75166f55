"""Action lifecycle hooks as explicit values.

Hooks observe an Action run: ``before_execute`` before ``perform``,
``after_execute`` after it (even when it raised), then exactly one of
``after_success`` / ``after_failure``.  They never suppress exceptions.

A run receives its hooks as an argument (``Organizer.call(..., hooks=...)``)
so two pipeline runs with different registries never see each other's
callbacks.

Example::

    registry = HookRegistry()
    registry.register(ChargeCard, after_failure=lambda ctx: alerts.append(ctx))
    CheckoutOrganizer.call(order, hooks=registry)
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, fields, replace
from typing import TYPE_CHECKING, Any, Union

if TYPE_CHECKING:
    from flowlight.orchestration.context import Context

HookFn = Callable[["Context"], Any]


@dataclass(frozen=True)
class ActionHooks:
    """The four lifecycle callbacks; any of them may be ``None``."""

    before_execute: HookFn | None = None
    after_execute: HookFn | None = None
    after_success: HookFn | None = None
    after_failure: HookFn | None = None

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))


NO_HOOKS = ActionHooks()


class HookRegistry:
    """Maps Action types to their hook bundles.

    Lookup walks the action's MRO, so hooks registered for a base class
    apply to subclasses that have none of their own.
    """

    def __init__(self) -> None:
        self._hooks: dict[type, ActionHooks] = {}

    def register(
        self,
        action_cls: type,
        hooks: ActionHooks | None = None,
        **callbacks: HookFn | None,
    ) -> ActionHooks:
        """
        Set hooks for ``action_cls``.

        Pass a full ``ActionHooks`` bundle, or individual callbacks
        (``after_failure=fn``) to update the existing bundle.
        """
        if hooks is None:
            hooks = replace(self._hooks.get(action_cls, NO_HOOKS), **callbacks)
        self._hooks[action_cls] = hooks
        return hooks

    def unregister(self, action_cls: type) -> None:
        self._hooks.pop(action_cls, None)

    def for_action(self, action_cls: type) -> ActionHooks:
        for klass in action_cls.__mro__:
            if klass in self._hooks:
                return self._hooks[klass]
        return NO_HOOKS

    def reset(self) -> None:
        """Drop every registration."""
        self._hooks.clear()

    def __contains__(self, action_cls: object) -> bool:
        return action_cls in self._hooks

    def __len__(self) -> int:
        return len(self._hooks)


HooksArg = Union[ActionHooks, HookRegistry, None]


def resolve_hooks(hooks: HooksArg, action_cls: type) -> ActionHooks:
    """Hooks that apply to one run of ``action_cls``."""
    if hooks is None:
        return NO_HOOKS
    if isinstance(hooks, HookRegistry):
        return hooks.for_action(action_cls)
    return hooks
