"""Validation rules.

A closed set of rule kinds sharing one capability: ``validate(context, raw)``
returns the accepted value or raises ``ValidationError``.  Internally each
rule produces a ``ValidationOutcome`` via ``check(context, raw)``.

Every rule follows the same steps:

1. Empty input (``None`` or whitespace only) is accepted as ``None`` when
   ``allow_null`` is set, otherwise rejected as "input required".
2. The raw value is canonicalized; an ``EncodingError`` becomes a
   ``ValidationError``.
3. The kind-specific checks run against the canonical value only.
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import bleach

from inputguard.core.errors import EncodingError
from inputguard.security.canonicalizer import Canonicalizer
from inputguard.security.patterns import DEFAULT_PATTERNS
from inputguard.validation.outcome import ValidationOutcome, invalid

_INTEGER_RE = re.compile(r"^[+-]?\d+$", re.ASCII)
_DECIMAL_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$", re.ASCII)

CREDIT_CARD_MAX_LENGTH = 19


def is_empty(value: Any) -> bool:
    """``None``, a whitespace-only string, or zero-length bytes."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return len(value) == 0


# ── Base ────────────────────────────────────────────────────────────────


@dataclass(frozen=True, kw_only=True)
class BaseRule:
    """Shared null handling and canonicalization.

    Attributes:
        type_name:  Registry key for this rule.
        encoder:    Canonicalizer applied before any check.
        allow_null: Accept empty input as ``None``.
    """

    type_name: str
    encoder: Canonicalizer
    allow_null: bool = False

    def check(self, context: str, raw: Any) -> ValidationOutcome:
        if is_empty(raw):
            if self.allow_null:
                return ValidationOutcome.accept(None)
            return invalid(
                "input_required",
                context,
                f"{context}: Input required",
                f"Input required: context={context}, type={self.type_name}, input={raw!r}",
            )
        try:
            canonical = self.encoder.canonicalize(raw)
        except EncodingError as exc:
            return invalid(
                "encoding",
                context,
                f"{context}: Invalid input. Encoding problem detected.",
                f"Error canonicalizing user input: context={context}, input={raw!r}: {exc.log_message}",
                cause=exc,
            )
        return self._check_canonical(context, canonical)

    def validate(self, context: str, raw: Any) -> Any:
        """Return the accepted value or raise ``ValidationError``."""
        return self.check(context, raw).unwrap()

    def is_valid(self, context: str, raw: Any) -> bool:
        return self.check(context, raw).ok

    def _check_canonical(self, context: str, canonical: str) -> ValidationOutcome:
        raise NotImplementedError


# ── Text against a whitelist ────────────────────────────────────────────


@dataclass(frozen=True, kw_only=True)
class StringRule(BaseRule):
    """Canonical text matching at least one whitelist pattern.

    Patterns are tried in order; the first full match accepts.  An empty
    pattern set rejects everything.
    """

    patterns: tuple[re.Pattern[str], ...] = field(default=())
    min_length: int = 0
    max_length: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "patterns", tuple(_compile_all(self.patterns)))

    def _check_canonical(self, context: str, canonical: str) -> ValidationOutcome:
        if len(canonical) < self.min_length:
            return invalid(
                "length",
                context,
                f"{context}: Invalid input. The minimum length of {self.min_length} characters was not met.",
                f"Input does not meet the minimum length of {self.min_length} by "
                f"{self.min_length - len(canonical)} characters: context={context}, "
                f"type={self.type_name}, input={canonical!r}",
            )
        if self.max_length is not None and len(canonical) > self.max_length:
            return invalid(
                "length",
                context,
                f"{context}: Invalid input. The maximum length of {self.max_length} characters was exceeded.",
                f"Input exceeds maximum allowed length of {self.max_length} by "
                f"{len(canonical) - self.max_length} characters: context={context}, "
                f"type={self.type_name}, input={canonical!r}",
            )
        for pattern in self.patterns:
            if pattern.fullmatch(canonical):
                return ValidationOutcome.accept(canonical)

        described = ", ".join(p.pattern for p in self.patterns) or "<none>"
        return invalid(
            "whitelist",
            context,
            f"{context}: Invalid input. Please conform to regex {described}"
            + ("" if self.max_length is None else f" with a maximum length of {self.max_length}"),
            f"Invalid input: context={context}, type({self.type_name})={described}, input={canonical!r}",
        )


# ── Dates ───────────────────────────────────────────────────────────────


@dataclass(frozen=True, kw_only=True)
class DateRule(BaseRule):
    """Canonical text parsed with a ``strptime`` format."""

    date_format: str

    def _check_canonical(self, context: str, canonical: str) -> ValidationOutcome:
        try:
            return ValidationOutcome.accept(datetime.strptime(canonical, self.date_format))
        except ValueError as exc:
            return invalid(
                "date",
                context,
                f"{context}: Invalid date must follow the {self.date_format} format",
                f"Invalid date: context={context}, format={self.date_format}, input={canonical!r}",
                cause=exc,
            )


# ── Credit cards ────────────────────────────────────────────────────────


@dataclass(frozen=True, kw_only=True)
class CreditCardRule(BaseRule):
    """Card number shape check followed by the Luhn checksum."""

    pattern: re.Pattern[str] = field(default_factory=lambda: re.compile(DEFAULT_PATTERNS["CreditCard"]))

    def _check_canonical(self, context: str, canonical: str) -> ValidationOutcome:
        shape = StringRule(
            type_name=self.type_name,
            encoder=self.encoder,
            patterns=(self.pattern,),
            max_length=CREDIT_CARD_MAX_LENGTH,
        )
        outcome = shape._check_canonical(context, canonical)
        if not outcome.ok:
            return outcome

        digits = [int(ch) for ch in canonical if ch.isdigit()]
        if not luhn_valid(digits):
            return invalid(
                "credit_card",
                context,
                f"{context}: Invalid credit card input",
                f"Invalid credit card checksum: context={context}",
            )
        return ValidationOutcome.accept(canonical)


def luhn_valid(digits: list[int]) -> bool:
    """Luhn (mod 10) checksum over *digits*."""
    total = 0
    for index, digit in enumerate(reversed(digits)):
        if index % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return bool(digits) and total % 10 == 0


# ── Numbers ─────────────────────────────────────────────────────────────


@dataclass(frozen=True, kw_only=True)
class NumberRule(BaseRule):
    """Floating-point value within ``[min_value, max_value]`` inclusive."""

    min_value: float
    max_value: float

    def _check_canonical(self, context: str, canonical: str) -> ValidationOutcome:
        if self.min_value > self.max_value:
            return invalid(
                "number",
                context,
                f"{context}: Invalid number input",
                f"Validation parameter error for number: max_value ({self.max_value}) must be "
                f"greater than min_value ({self.min_value}) for {context}",
            )
        if not _DECIMAL_RE.fullmatch(canonical):
            return invalid(
                "number",
                context,
                f"{context}: Invalid number input",
                f"Invalid number input: context={context}, input={canonical!r}",
            )
        value = float(canonical)
        if not math.isfinite(value):
            return invalid(
                "number",
                context,
                f"{context}: Invalid number input: not a finite number",
                f"Invalid number input is not finite: context={context}, input={canonical!r}",
            )
        if not self.min_value <= value <= self.max_value:
            return invalid(
                "number",
                context,
                f"{context}: Invalid number input must be between {self.min_value} and {self.max_value}",
                f"Invalid number input must be between {self.min_value} and {self.max_value}: "
                f"context={context}, input={canonical!r}",
            )
        return ValidationOutcome.accept(value)


@dataclass(frozen=True, kw_only=True)
class IntegerRule(BaseRule):
    """Integer value within ``[min_value, max_value]`` inclusive."""

    min_value: int
    max_value: int

    def _check_canonical(self, context: str, canonical: str) -> ValidationOutcome:
        if self.min_value > self.max_value:
            return invalid(
                "integer",
                context,
                f"{context}: Invalid number input",
                f"Validation parameter error for integer: max_value ({self.max_value}) must be "
                f"greater than min_value ({self.min_value}) for {context}",
            )
        if not _INTEGER_RE.fullmatch(canonical):
            return invalid(
                "integer",
                context,
                f"{context}: Invalid number input",
                f"Invalid integer input: context={context}, input={canonical!r}",
            )
        try:
            value = int(canonical)
        except ValueError as exc:
            # Digit strings past the interpreter's conversion limit
            return invalid(
                "integer",
                context,
                f"{context}: Invalid number input",
                f"Invalid integer input could not be converted: context={context}, "
                f"length={len(canonical)}",
                cause=exc,
            )
        if not self.min_value <= value <= self.max_value:
            return invalid(
                "integer",
                context,
                f"{context}: Invalid number input must be between {self.min_value} and {self.max_value}",
                f"Invalid integer input must be between {self.min_value} and {self.max_value}: "
                f"context={context}, input={canonical!r}",
            )
        return ValidationOutcome.accept(value)


# ── Safe HTML ───────────────────────────────────────────────────────────


@dataclass(frozen=True, kw_only=True)
class SafeHTMLRule(BaseRule):
    """Markup cleaned with bleach against a tag/attribute/protocol policy.

    Returns the cleaned markup; disallowed tags are stripped.
    """

    max_length: int | None = None
    tags: frozenset[str] = frozenset()
    attributes: tuple[str, ...] = ()
    protocols: frozenset[str] = frozenset({"http", "https", "mailto"})

    def _check_canonical(self, context: str, canonical: str) -> ValidationOutcome:
        if self.max_length is not None and len(canonical) > self.max_length:
            return invalid(
                "length",
                context,
                f"{context}: Invalid HTML. You entered {len(canonical)} characters. "
                f"Input can not exceed {self.max_length} characters.",
                f"HTML input exceeds maximum allowed length of {self.max_length} by "
                f"{len(canonical) - self.max_length} characters: context={context}",
            )
        cleaned = bleach.clean(
            canonical,
            tags=set(self.tags),
            attributes=list(self.attributes),
            protocols=set(self.protocols),
            strip=True,
        )
        return ValidationOutcome.accept(cleaned)


Rule = StringRule | DateRule | CreditCardRule | NumberRule | IntegerRule | SafeHTMLRule


def _compile_all(patterns: Iterable[str | re.Pattern[str]]) -> list[re.Pattern[str]]:
    compiled: list[re.Pattern[str]] = []
    for pattern in patterns:
        compiled.append(pattern if isinstance(pattern, re.Pattern) else re.compile(pattern))
    return compiled
