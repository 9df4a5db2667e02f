"""inputguard: canonicalization-aware whitelist validation for untrusted input."""

from inputguard.core.config import Settings
from inputguard.core.errors import (
    EncodingError,
    InputGuardError,
    IntrusionError,
    ValidationAvailabilityError,
    ValidationError,
)
from inputguard.validation.http import RequestSurface
from inputguard.validation.outcome import ValidationErrorList
from inputguard.validation.validator import Validator

__all__ = [
    "EncodingError",
    "InputGuardError",
    "IntrusionError",
    "RequestSurface",
    "Settings",
    "ValidationAvailabilityError",
    "ValidationError",
    "ValidationErrorList",
    "Validator",
]
