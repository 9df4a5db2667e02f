"""Validation rules, the rule registry and the ``Validator`` dispatcher.

``Validator`` is the public entry point; the checkers and rules behind it
return ``ValidationOutcome`` values.
"""

from inputguard.validation.outcome import ValidationErrorList, ValidationOutcome
from inputguard.validation.validator import Validator

__all__ = [
    "ValidationErrorList",
    "ValidationOutcome",
    "Validator",
]
