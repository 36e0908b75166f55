"""Tests for ActionHooks and HookRegistry — explicit, per-run hook lookup."""

from flowlight.orchestration.action import Action
from flowlight.orchestration.hooks import NO_HOOKS, ActionHooks, HookRegistry, resolve_hooks


class BaseCharge(Action):
    def perform(self, context):
        pass


class ChargeCard(BaseCharge):
    pass


class Refund(Action):
    def perform(self, context):
        pass


def noop(ctx):
    return None


class TestActionHooks:
    def test_empty(self):
        assert ActionHooks().is_empty() is True
        assert ActionHooks(after_failure=noop).is_empty() is False


class TestHookRegistry:
    def test_register_bundle(self, hook_registry):
        hooks = ActionHooks(before_execute=noop)
        assert hook_registry.register(Refund, hooks) is hooks
        assert hook_registry.for_action(Refund) is hooks
        assert Refund in hook_registry
        assert len(hook_registry) == 1

    def test_register_callbacks_updates_bundle(self, hook_registry):
        hook_registry.register(Refund, before_execute=noop)
        hook_registry.register(Refund, after_failure=noop)
        hooks = hook_registry.for_action(Refund)
        assert hooks.before_execute is noop
        assert hooks.after_failure is noop
        assert hooks.after_success is None

    def test_unregistered_action(self, hook_registry):
        assert hook_registry.for_action(Refund) is NO_HOOKS

    def test_lookup_walks_mro(self, hook_registry):
        hooks = hook_registry.register(BaseCharge, after_success=noop)
        assert hook_registry.for_action(ChargeCard) is hooks

    def test_subclass_registration_wins(self, hook_registry):
        hook_registry.register(BaseCharge, after_success=noop)
        own = hook_registry.register(ChargeCard, after_failure=noop)
        assert hook_registry.for_action(ChargeCard) is own

    def test_unregister_and_reset(self, hook_registry):
        hook_registry.register(Refund, before_execute=noop)
        hook_registry.register(ChargeCard, before_execute=noop)
        hook_registry.unregister(Refund)
        hook_registry.unregister(Refund)
        assert Refund not in hook_registry
        hook_registry.reset()
        assert len(hook_registry) == 0

    def test_registries_are_isolated(self):
        first, second = HookRegistry(), HookRegistry()
        first.register(Refund, before_execute=noop)
        assert second.for_action(Refund) is NO_HOOKS


class TestResolveHooks:
    def test_none(self):
        assert resolve_hooks(None, Refund) is NO_HOOKS

    def test_bundle_applies_to_any_action(self):
        hooks = ActionHooks(after_execute=noop)
        assert resolve_hooks(hooks, Refund) is hooks
        assert resolve_hooks(hooks, ChargeCard) is hooks

    def test_registry(self, hook_registry):
        hooks = hook_registry.register(Refund, after_execute=noop)
        assert resolve_hooks(hook_registry, Refund) is hooks
        assert resolve_hooks(hook_registry, ChargeCard) is NO_HOOKS
