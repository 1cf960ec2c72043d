from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str


class DomainError(Exception):
    """Base class for errors raised or returned by the booking domain."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(DomainError):
    """Input rejected with one or more field-tagged problems."""

    def __init__(self, details: list[FieldError]) -> None:
        super().__init__("Validation error")
        self.details = list(details)

    def __repr__(self) -> str:
        return f"ValidationError({self.details!r})"


class NotFoundError(DomainError):
    pass


class BusinessRuleError(DomainError):
    """A well-formed request refused because of the current domain state."""


class InternalInconsistencyError(DomainError):
    """Stored data contradicts itself, e.g. a launch whose rocket is gone."""
