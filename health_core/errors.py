"""
Exception taxonomy for the analytics core.

Only structural problems raise. Degenerate statistical input (too few points,
zero variance, zero baseline) is absorbed into documented neutral results by
the services and never reaches this module.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from health_core.domain.models import FieldError


class HealthCoreError(Exception):
    """Base class for every error raised by the analytics core."""


class InvalidArgumentError(HealthCoreError, ValueError):
    """A caller passed an argument outside its documented domain."""

    def __init__(self, argument: str, message: str) -> None:
        super().__init__(f"{argument}: {message}")
        self.argument = argument


class HealthDataValidationError(HealthCoreError, ValueError):
    """A health record is structurally invalid. Carries field-level detail."""

    def __init__(self, errors: Sequence[FieldError]) -> None:
        self.errors: list[FieldError] = list(errors)
        summary = "; ".join(f"{e.field}: {e.message}" for e in self.errors)
        super().__init__(f"Invalid health record ({summary})")
