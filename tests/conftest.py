"""
Shared pytest fixtures and configuration for flowlight tests.

This module provides:
- Settings cache reset for test isolation
- Hook registries scoped to a single test
- Small sample Actions used across test modules

Usage:
    Fixtures are auto-discovered by pytest. Use them as function arguments.
"""

import sys
from pathlib import Path
from typing import Generator

import pytest

# Ensure flowlight package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from flowlight.core.logging import clear_context
from flowlight.core.settings import reset_settings
from flowlight.orchestration import HookRegistry


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(__file__).parent)

        if "integration" in str(test_path):
            item.add_marker(pytest.mark.integration)

        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration", "slow", "golden"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Isolation Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def clean_settings_fixture(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """
    Reset cached settings around each test.

    FLOWLIGHT_* variables from the developer's shell must not leak in.
    """
    import os

    for key in list(os.environ):
        if key.startswith("FLOWLIGHT_"):
            monkeypatch.delenv(key)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture(autouse=True)
def clean_log_context_fixture() -> Generator[None, None, None]:
    clear_context()
    yield
    clear_context()


@pytest.fixture
def hook_registry() -> Generator[HookRegistry, None, None]:
    """A fresh registry, reset after the test."""
    registry = HookRegistry()
    yield registry
    registry.reset()


@pytest.fixture
def calls() -> list[str]:
    """Ordered record of callbacks, shared by hooks and steps in a test."""
    return []
