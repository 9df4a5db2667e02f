"""Validation results and the caller-owned error list.

Every validation kind is implemented once as a ``check_*`` operation that
returns a ``ValidationOutcome``.  The predicate, strict and accumulating
public forms are thin adapters over that single result.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Generic, TypeVar

from inputguard.core.errors import InputGuardError, ValidationError
from inputguard.security.audit import log_rejection

T = TypeVar("T")


@dataclass(frozen=True)
class ValidationOutcome(Generic[T]):
    """Either an accepted value or a failure, never both.

    Attributes:
        value: The accepted, canonicalized value (may be ``None`` when
               empty input was allowed).
        error: The failure, or ``None`` on acceptance.
    """

    value: T | None = None
    error: InputGuardError | None = None

    def __post_init__(self) -> None:
        if self.error is not None and self.value is not None:
            raise ValueError("ValidationOutcome cannot carry both a value and an error")

    @classmethod
    def accept(cls, value: T | None) -> "ValidationOutcome[T]":
        return cls(value=value)

    @classmethod
    def reject(cls, error: InputGuardError) -> "ValidationOutcome[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T | None:
        """Return the value, or raise the failure."""
        if self.error is not None:
            raise self.error
        return self.value

    def unwrap_into(self, errors: "ValidationErrorList", context: str, placeholder: T | None) -> T | None:
        """Accumulating unwrap.

        A ``ValidationError`` is appended to *errors* and *placeholder* is
        returned.  Any other failure (notably ``IntrusionError``) is raised.
        """
        if self.error is None:
            return self.value
        if isinstance(self.error, ValidationError):
            errors.add_error(context, self.error)
            return placeholder
        raise self.error


class ValidationErrorList:
    """Ordered, append-only list of ``(context, ValidationError)`` pairs.

    Owned by the caller for one logical validation pass.  Not thread-safe;
    concurrent accumulation into one list must be serialized by the caller.
    Several errors may share a context.
    """

    def __init__(self) -> None:
        self._errors: list[tuple[str, ValidationError]] = []

    def add_error(self, context: str, error: ValidationError) -> None:
        """Append *error* under *context*.

        Raises:
            TypeError: If *error* is not a ``ValidationError``.
        """
        if not isinstance(error, ValidationError):
            raise TypeError(f"Expected ValidationError, got {type(error).__name__}")
        self._errors.append((context, error))

    def get_error(self, context: str) -> ValidationError | None:
        """Return the first error recorded under *context*, or ``None``."""
        for ctx, error in self._errors:
            if ctx == context:
                return error
        return None

    def errors(self) -> list[ValidationError]:
        """Return the recorded errors in insertion order."""
        return [error for _, error in self._errors]

    def items(self) -> list[tuple[str, ValidationError]]:
        return list(self._errors)

    def is_empty(self) -> bool:
        return not self._errors

    def __len__(self) -> int:
        return len(self._errors)

    def __iter__(self) -> Iterator[tuple[str, ValidationError]]:
        return iter(list(self._errors))


def invalid(
    event: str,
    context: str,
    user_message: str,
    log_message: str,
    cause: BaseException | None = None,
) -> ValidationOutcome:
    """Build a rejected outcome and log its diagnostic message."""
    log_rejection(event, context, log_message)
    return ValidationOutcome.reject(
        ValidationError(user_message, log_message, cause=cause, context=context)
    )
