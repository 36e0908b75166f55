"""
Shared enums for the flowlight engine.

Values are the strings stored in ``Context.meta`` and in snapshots, so they
stay stable across releases.

STDLIB ONLY - NO PYDANTIC.
"""

from enum import Enum


class ContextStatus(str, Enum):
    """
    Lifecycle of a Context.

    INCOMPLETE until a runner finishes every step without failure; COMPLETE
    is terminal and tells Actions to skip execution.
    """

    INCOMPLETE = "INCOMPLETE"
    COMPLETE = "COMPLETE"


class ContextOperation(str, Enum):
    """Business operation a pipeline is performing."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"

    @classmethod
    def parse(cls, value: object) -> "ContextOperation | None":
        """Case- and whitespace-insensitive lookup; ``None`` when unknown."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().upper())
        except ValueError:
            return None
