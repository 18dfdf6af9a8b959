"""Scheduling error taxonomy.

Routes translate these into HTTP responses; services raise them and never
retry. ``ConflictError`` always carries the entities that block the
operation so a human can decide what to do next.
"""

from __future__ import annotations

from typing import Any, Sequence


class SchedulingError(Exception):
    """Base class for all expected scheduling failures."""

    status_code = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(SchedulingError):
    status_code = 404

    def __init__(self, entity: str, entity_id: str) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found")


class ConflictError(SchedulingError):
    status_code = 409

    def __init__(self, message: str, conflicts: Sequence[Any]) -> None:
        self.conflicts = list(conflicts)
        super().__init__(message)


class InvalidInputError(SchedulingError, ValueError):
    # Also a ValueError so pydantic validators surface it as a validation error.
    status_code = 400


class InternalError(SchedulingError):
    status_code = 500
