"""Orchestration exceptions — configuration defects in pipelines.

These are programming errors, not business failures: they are raised
immediately and are never turned into context errors.

Hierarchy::

    FlowlightConfigError  (from flowlight.core.errors)
      ├── StepConfigurationError   ── step cannot run where it was declared
      └── MapperContractError      ── a mapper is unusable or returned a non-mapping
"""

from typing import Any

from flowlight.core.errors import FlowlightConfigError


class StepConfigurationError(FlowlightConfigError):
    """Raised when a step cannot be run in the phase it was declared for."""

    def __init__(self, message: str, step: Any = None):
        self.step = step
        super().__init__(message)


class MapperContractError(FlowlightConfigError):
    """Raised when a validation mapper breaks its contract."""

    def __init__(self, message: str, mapper: Any = None, returned: Any = None):
        self.mapper = mapper
        self.returned = returned
        super().__init__(message)

    @classmethod
    def wrong_return(cls, mapper: Any, returned: Any) -> "MapperContractError":
        name = getattr(mapper, "__qualname__", type(mapper).__qualname__)
        return cls(
            f"Mapper {name} must return a mapping, got {type(returned).__name__}",
            mapper=mapper,
            returned=returned,
        )
