"""Error hierarchy for inputguard.

Every error carries two messages: ``user_message`` is safe to show to the
person who submitted the input, ``log_message`` is the detailed diagnostic
meant for logs only.  ``str(err)`` always returns the user message so that a
careless ``f"{err}"`` in a host application never leaks canonical paths or
raw attack payloads.
"""

from __future__ import annotations

from pydantic import BaseModel


class InputGuardError(Exception):
    """Base exception for all inputguard errors.

    Args:
        user_message: Sanitized, user-presentable message.
        log_message:  Detailed diagnostic for logs.  Defaults to *user_message*.
        cause:        Optional nested exception, stored as ``__cause__``.
        context:      Caller-supplied label for where the input came from.
    """

    def __init__(
        self,
        user_message: str,
        log_message: str = "",
        cause: BaseException | None = None,
        context: str = "",
    ) -> None:
        self.user_message = user_message
        self.log_message = log_message or user_message
        self.context = context
        super().__init__(user_message)
        if cause is not None:
            self.__cause__ = cause

    @property
    def cause(self) -> BaseException | None:
        """The nested exception, if any."""
        return self.__cause__


class ValidationError(InputGuardError):
    """The input is malformed relative to policy.

    A normal, expected outcome for both hostile and mistaken input.
    """


class ValidationAvailabilityError(ValidationError):
    """A bounded read could not deliver a line.

    Raised for a non-positive read limit, for exceeding the limit, and for
    underlying I/O failures (the original ``OSError`` is the ``cause``).
    """


class IntrusionError(InputGuardError):
    """The failure pattern itself is evidence of deliberate probing.

    Never swallowed by the accumulating API form.
    """


class EncodingError(InputGuardError):
    """The canonicalizer could not safely resolve the input.

    Always translated into ``ValidationError`` before reaching callers of
    the validator.
    """


class StructuredErrorResponse(BaseModel):
    """Structured error body for host applications.

    Returns ``{"error": str, "code": str, "request_id": str}`` and never
    includes ``log_message`` or stack traces.
    """

    error: str
    code: str
    request_id: str = ""

    @classmethod
    def from_exception(cls, exc: Exception, request_id: str = "") -> "StructuredErrorResponse":
        """Create from an exception, mapping to machine-readable codes."""
        if isinstance(exc, IntrusionError):
            return cls(
                error="Request rejected",
                code="INTRUSION_DETECTED",
                request_id=request_id,
            )
        if isinstance(exc, ValidationError):
            return cls(
                error=exc.user_message,
                code="VALIDATION_ERROR",
                request_id=request_id,
            )
        if isinstance(exc, InputGuardError):
            return cls(
                error=exc.user_message,
                code="INPUT_GUARD_ERROR",
                request_id=request_id,
            )
        # Unhandled: never expose internal details
        return cls(
            error="An internal error occurred",
            code="INTERNAL_ERROR",
            request_id=request_id,
        )
