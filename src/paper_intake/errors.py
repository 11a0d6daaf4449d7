"""Error types raised by the intake core.

Validation and not-found outcomes carry detail meant for the caller.
Storage, allocation and migration errors carry detail meant for operators
only; the HTTP layer replaces it with a generic message.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Violation:
    """A single broken rule, reported against the field it concerns."""

    field: str
    reason: str

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field, "reason": self.reason}


class PaperIntakeError(Exception):
    """Base class for all intake errors."""


class ValidationFailure(PaperIntakeError):
    """Submission broke one or more schema rules."""

    def __init__(self, violations: list[Violation]):
        self.violations = list(violations)
        fields = ", ".join(sorted({v.field for v in self.violations}))
        super().__init__(f"Validation failed for: {fields}")


class AllocationExhausted(PaperIntakeError):
    """No free reference code was found within the attempt budget."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(
            f"Failed to generate unique reference number after {attempts} attempts"
        )


class DuplicateKey(PaperIntakeError):
    """Insert conflicted with an existing id or reference number."""

    def __init__(self, field: str, value: str):
        self.field = field
        self.value = value
        super().__init__(f"Duplicate value for {field}: {value}")


class StorageUnavailable(PaperIntakeError):
    """The registration store could not complete an operation."""


class NotFound(PaperIntakeError):
    """No registration exists for the requested identifier."""


class MigrationFailure(PaperIntakeError):
    """Schema migration could not bring the store up to date."""
