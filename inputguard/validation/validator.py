"""Whitelist dispatcher.

``Validator`` exposes every validation kind in three call shapes that share
one implementation:

* ``is_valid_*``: predicate.  Returns ``False`` on any failure, including
  internal errors, and never raises.
* ``get_valid_*`` / ``assert_valid_*``: strict.  Returns the canonical value
  or raises ``ValidationError`` / ``IntrusionError``.
* the strict form called with ``errors=ValidationErrorList()``:
  accumulating.  A ``ValidationError`` is appended to the list and the raw
  input is returned as a placeholder; ``IntrusionError`` still propagates.

Use ``Validator.from_settings()`` at application startup.  It builds the
caller-facing validator and a dedicated filesystem-path validator whose
codecs and ``DirectoryName`` pattern cannot be changed by application
pattern overrides.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable
from typing import Any, BinaryIO

from inputguard.core.config import Settings, get_allowed_extensions
from inputguard.core.errors import EncodingError
from inputguard.security.canonicalizer import Canonicalizer, HTMLEntityCodec, PercentCodec
from inputguard.security.line_reader import safe_read_line
from inputguard.security.patterns import DEFAULT_PATTERNS, PatternRegistry
from inputguard.validation.files import FileSafetyChecker
from inputguard.validation.http import HTTPRequest, HTTPSurfaceChecker
from inputguard.validation.outcome import ValidationErrorList, ValidationOutcome, invalid
from inputguard.validation.registry import RuleRegistry
from inputguard.validation.rules import (
    CreditCardRule,
    DateRule,
    IntegerRule,
    NumberRule,
    Rule,
    SafeHTMLRule,
    StringRule,
)

logger = logging.getLogger(__name__)

MAX_REDIRECT_LENGTH = 512

_FILESYSTEM_ENCODER = Canonicalizer([HTMLEntityCodec(), PercentCodec()], strict=True)
_FILESYSTEM_PATTERNS = PatternRegistry()


def _check_filesystem_input(
    context: str, input: str | None, type_name: str, max_length: int, allow_null: bool
) -> ValidationOutcome:
    """Whitelist check for canonical paths with fixed codecs and built-in patterns."""
    pattern = _FILESYSTEM_PATTERNS.get(type_name)
    rule = StringRule(
        type_name=type_name,
        encoder=_FILESYSTEM_ENCODER,
        patterns=() if pattern is None else (pattern,),
        max_length=max_length,
        allow_null=allow_null,
    )
    return rule.check(context, input)


class Validator:
    """Canonicalization-aware whitelist validator.

    Args:
        settings:       Security configuration.  Defaults to ``Settings()``.
        encoder:        Canonicalizer for caller input.  Defaults to the
                        codecs named in ``settings.CANONICALIZER_CODECS``.
        patterns:       Named whitelist patterns.  Defaults to the built-ins.
        path_validator: Validator used for canonical directory paths.
                        Defaults to strict HTML-entity and percent decoding
                        with the built-in patterns, independent of
                        *encoder* and *patterns*.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        encoder: Canonicalizer | None = None,
        patterns: PatternRegistry | None = None,
        path_validator: "Validator | None" = None,
    ) -> None:
        self.settings = settings or Settings()
        self.encoder = encoder or Canonicalizer.from_names(
            self.settings.CANONICALIZER_CODECS, strict=self.settings.CANONICALIZE_STRICT
        )
        self.patterns = patterns if patterns is not None else PatternRegistry()
        self.rules = RuleRegistry()
        if path_validator is None:
            check_path_input = _check_filesystem_input
        else:
            check_path_input = path_validator._check_input

        self._files = FileSafetyChecker(
            check_input=self._check_input,
            check_path_input=check_path_input,
            allowed_extensions=get_allowed_extensions(self.settings),
            max_upload_bytes=self.settings.MAX_FILE_UPLOAD_BYTES,
        )
        self._http = HTTPSurfaceChecker(check_input=self._check_input)

    # ── Construction ────────────────────────────────────────────────

    @classmethod
    def for_filesystem(cls, settings: Settings | None = None) -> "Validator":
        """Validator for canonical filesystem paths.

        Always uses strict HTML-entity and percent decoding and the built-in
        patterns, whatever the application configures.
        """
        return cls(
            settings,
            encoder=Canonicalizer([HTMLEntityCodec(), PercentCodec()], strict=True),
            patterns=PatternRegistry(),
        )

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "Validator":
        """Build the caller-facing validator and its filesystem-path validator.

        Application patterns are loaded from ``VALIDATION_PATTERNS_PATH``
        when set.
        """
        settings = settings or Settings()
        if settings.VALIDATION_PATTERNS_PATH:
            patterns = PatternRegistry.from_yaml(settings.VALIDATION_PATTERNS_PATH)
        else:
            patterns = PatternRegistry()
        logger.info(
            "Validator configured: codecs=%s strict=%s patterns=%d",
            settings.CANONICALIZER_CODECS,
            settings.CANONICALIZE_STRICT,
            len(patterns),
        )
        return cls(
            settings,
            patterns=patterns,
            path_validator=cls.for_filesystem(settings),
        )

    # ── Rule registry ───────────────────────────────────────────────

    def add_rule(self, rule: Rule) -> None:
        """Register *rule* under its type name (last write wins)."""
        self.rules.register(rule)

    def get_rule(self, name: str) -> Rule | None:
        return self.rules.lookup(name)

    # ── Mode adapters ───────────────────────────────────────────────

    @staticmethod
    def _predicate(check: Callable[[], ValidationOutcome]) -> bool:
        try:
            return check().ok
        except Exception:
            return False

    @staticmethod
    def _unwrap(
        outcome: ValidationOutcome,
        context: str,
        placeholder: Any,
        errors: ValidationErrorList | None,
    ) -> Any:
        if errors is None:
            return outcome.unwrap()
        return outcome.unwrap_into(errors, context, placeholder)

    # ── Registered rules ────────────────────────────────────────────

    def _check_named(self, context: str, rule_name: str, input: Any) -> ValidationOutcome:
        rule = self.rules.lookup(rule_name)
        if rule is None:
            return invalid(
                "unknown_rule",
                context,
                f"{context}: Invalid input",
                f"No validation rule registered under {rule_name!r}: context={context}",
            )
        return rule.check(context, input)

    def is_valid(self, context: str, rule_name: str, input: Any) -> bool:
        return self._predicate(lambda: self._check_named(context, rule_name, input))

    def get_valid(
        self, context: str, rule_name: str, input: Any, errors: ValidationErrorList | None = None
    ) -> Any:
        """Validate *input* with the rule registered under *rule_name*."""
        return self._unwrap(self._check_named(context, rule_name, input), context, input, errors)

    # ── Text against a named pattern ────────────────────────────────

    def _whitelist_for(self, type_name: str) -> tuple[tuple[re.Pattern[str], ...], int]:
        registered = self.rules.lookup(type_name)
        if isinstance(registered, StringRule):
            return registered.patterns, registered.min_length
        pattern = self.patterns.get(type_name)
        if pattern is not None:
            return (pattern,), 0
        # Unregistered type names are used as the regex itself
        try:
            return (re.compile(type_name),), 0
        except re.error as exc:
            raise ValueError(f"Validation type {type_name!r} is neither registered nor a valid regex") from exc

    def _check_input(
        self, context: str, input: str | None, type_name: str, max_length: int, allow_null: bool
    ) -> ValidationOutcome:
        patterns, min_length = self._whitelist_for(type_name)
        rule = StringRule(
            type_name=type_name,
            encoder=self.encoder,
            patterns=patterns,
            min_length=min_length,
            max_length=max_length,
            allow_null=allow_null,
        )
        return rule.check(context, input)

    def is_valid_input(
        self, context: str, input: str | None, type_name: str, max_length: int, allow_null: bool
    ) -> bool:
        return self._predicate(lambda: self._check_input(context, input, type_name, max_length, allow_null))

    def get_valid_input(
        self,
        context: str,
        input: str | None,
        type_name: str,
        max_length: int,
        allow_null: bool,
        errors: ValidationErrorList | None = None,
    ) -> str | None:
        """Return the canonical *input* if it matches the *type_name* whitelist.

        *type_name* is looked up among registered ``StringRule``s, then the
        pattern registry; otherwise it is compiled as a regex.  *max_length*
        applies to the canonical value.
        """
        outcome = self._check_input(context, input, type_name, max_length, allow_null)
        return self._unwrap(outcome, context, input, errors)

    # ── Dates ───────────────────────────────────────────────────────

    def _check_date(self, context: str, input: str | None, date_format: str, allow_null: bool) -> ValidationOutcome:
        rule = DateRule(type_name="SimpleDate", encoder=self.encoder, date_format=date_format, allow_null=allow_null)
        return rule.check(context, input)

    def is_valid_date(self, context: str, input: str | None, date_format: str, allow_null: bool) -> bool:
        return self._predicate(lambda: self._check_date(context, input, date_format, allow_null))

    def get_valid_date(
        self,
        context: str,
        input: str | None,
        date_format: str,
        allow_null: bool,
        errors: ValidationErrorList | None = None,
    ) -> Any:
        """Return a ``datetime`` parsed from the canonical *input* with *date_format*."""
        return self._unwrap(self._check_date(context, input, date_format, allow_null), context, input, errors)

    # ── Safe HTML ───────────────────────────────────────────────────

    def _check_safe_html(self, context: str, input: str | None, max_length: int, allow_null: bool) -> ValidationOutcome:
        rule = SafeHTMLRule(
            type_name="safehtml",
            encoder=self.encoder,
            allow_null=allow_null,
            max_length=max_length,
            tags=frozenset(self.settings.SAFE_HTML_TAGS),
            attributes=tuple(self.settings.SAFE_HTML_ATTRIBUTES),
            protocols=frozenset(self.settings.SAFE_HTML_PROTOCOLS),
        )
        return rule.check(context, input)

    def is_valid_safe_html(self, context: str, input: str | None, max_length: int, allow_null: bool) -> bool:
        return self._predicate(lambda: self._check_safe_html(context, input, max_length, allow_null))

    def get_valid_safe_html(
        self,
        context: str,
        input: str | None,
        max_length: int,
        allow_null: bool,
        errors: ValidationErrorList | None = None,
    ) -> str | None:
        """Return the cleaned markup for the canonical *input*."""
        return self._unwrap(self._check_safe_html(context, input, max_length, allow_null), context, input, errors)

    # ── Credit cards ────────────────────────────────────────────────

    def _check_credit_card(self, context: str, input: str | None, allow_null: bool) -> ValidationOutcome:
        pattern = self.patterns.get("CreditCard") or re.compile(DEFAULT_PATTERNS["CreditCard"])
        rule = CreditCardRule(type_name="creditcard", encoder=self.encoder, allow_null=allow_null, pattern=pattern)
        return rule.check(context, input)

    def is_valid_credit_card(self, context: str, input: str | None, allow_null: bool) -> bool:
        return self._predicate(lambda: self._check_credit_card(context, input, allow_null))

    def get_valid_credit_card(
        self, context: str, input: str | None, allow_null: bool, errors: ValidationErrorList | None = None
    ) -> str | None:
        return self._unwrap(self._check_credit_card(context, input, allow_null), context, input, errors)

    # ── Numbers ─────────────────────────────────────────────────────

    def _check_double(
        self, context: str, input: str | None, min_value: float, max_value: float, allow_null: bool
    ) -> ValidationOutcome:
        rule = NumberRule(
            type_name="number",
            encoder=self.encoder,
            allow_null=allow_null,
            min_value=min_value,
            max_value=max_value,
        )
        return rule.check(context, input)

    def _check_number(
        self, context: str, input: str | None, min_value: int, max_value: int, allow_null: bool
    ) -> ValidationOutcome:
        # Integer bounds are widened to float on purpose; extreme 64-bit
        # bounds round to the nearest double.
        return self._check_double(context, input, float(min_value), float(max_value), allow_null)

    def _check_integer(
        self, context: str, input: str | None, min_value: int, max_value: int, allow_null: bool
    ) -> ValidationOutcome:
        rule = IntegerRule(
            type_name="number",
            encoder=self.encoder,
            allow_null=allow_null,
            min_value=min_value,
            max_value=max_value,
        )
        return rule.check(context, input)

    def is_valid_number(self, context: str, input: str | None, min_value: int, max_value: int, allow_null: bool) -> bool:
        return self._predicate(lambda: self._check_number(context, input, min_value, max_value, allow_null))

    def get_valid_number(
        self,
        context: str,
        input: str | None,
        min_value: int,
        max_value: int,
        allow_null: bool,
        errors: ValidationErrorList | None = None,
    ) -> Any:
        """Float within integer bounds, compared after widening the bounds to float."""
        outcome = self._check_number(context, input, min_value, max_value, allow_null)
        return self._unwrap(outcome, context, input, errors)

    def is_valid_double(
        self, context: str, input: str | None, min_value: float, max_value: float, allow_null: bool
    ) -> bool:
        return self._predicate(lambda: self._check_double(context, input, min_value, max_value, allow_null))

    def get_valid_double(
        self,
        context: str,
        input: str | None,
        min_value: float,
        max_value: float,
        allow_null: bool,
        errors: ValidationErrorList | None = None,
    ) -> Any:
        outcome = self._check_double(context, input, min_value, max_value, allow_null)
        return self._unwrap(outcome, context, input, errors)

    def is_valid_integer(
        self, context: str, input: str | None, min_value: int, max_value: int, allow_null: bool
    ) -> bool:
        return self._predicate(lambda: self._check_integer(context, input, min_value, max_value, allow_null))

    def get_valid_integer(
        self,
        context: str,
        input: str | None,
        min_value: int,
        max_value: int,
        allow_null: bool,
        errors: ValidationErrorList | None = None,
    ) -> Any:
        outcome = self._check_integer(context, input, min_value, max_value, allow_null)
        return self._unwrap(outcome, context, input, errors)

    # ── List membership ─────────────────────────────────────────────

    def _check_list_item(self, context: str, input: str | None, allowed: Iterable[str]) -> ValidationOutcome:
        if input in allowed:
            return ValidationOutcome.accept(input)
        return invalid(
            "list_item",
            context,
            f"{context}: Invalid list item",
            f"Invalid list item: context={context}, input={input!r}",
        )

    def is_valid_list_item(self, context: str, input: str | None, allowed: Iterable[str]) -> bool:
        return self._predicate(lambda: self._check_list_item(context, input, allowed))

    def get_valid_list_item(
        self, context: str, input: str | None, allowed: Iterable[str], errors: ValidationErrorList | None = None
    ) -> str | None:
        """Return *input* if it is one of *allowed* (exact, uncanonicalized)."""
        return self._unwrap(self._check_list_item(context, input, allowed), context, input, errors)

    # ── Printable ASCII ─────────────────────────────────────────────

    def _check_printable(
        self, context: str, input: str | bytes | None, max_length: int, allow_null: bool
    ) -> ValidationOutcome:
        if input is None or len(input) == 0:
            if allow_null:
                return ValidationOutcome.accept(None)
            return invalid(
                "input_required",
                context,
                f"{context}: Input bytes required",
                f"Input bytes required: context={context}",
            )

        if isinstance(input, (bytes, bytearray)):
            value: str | bytes = bytes(input)
            codes = list(value)
        else:
            try:
                value = self.encoder.canonicalize(input)
            except EncodingError as exc:
                return invalid(
                    "encoding",
                    context,
                    f"{context}: Invalid printable input",
                    f"Invalid encoding of printable input, context={context}, input={input!r}",
                    cause=exc,
                )
            codes = [ord(ch) for ch in value]

        if len(codes) > max_length:
            return invalid(
                "length",
                context,
                f"{context}: Input bytes can not exceed {max_length} bytes",
                f"Input exceeds maximum allowed length of {max_length} by {len(codes) - max_length} "
                f"bytes: context={context}, input={value!r}",
            )
        for code in codes:
            if code <= 0x20 or code >= 0x7E:
                return invalid(
                    "printable",
                    context,
                    f"{context}: Invalid input bytes: context={context}",
                    f"Invalid non-ASCII input bytes, context={context}, input={value!r}",
                )
        return ValidationOutcome.accept(value)

    def is_valid_printable(self, context: str, input: str | bytes | None, max_length: int, allow_null: bool) -> bool:
        return self._predicate(lambda: self._check_printable(context, input, max_length, allow_null))

    def get_valid_printable(
        self,
        context: str,
        input: str | bytes | None,
        max_length: int,
        allow_null: bool,
        errors: ValidationErrorList | None = None,
    ) -> str | bytes | None:
        """Printable ASCII (0x21-0x7D) only.

        ``str`` input is canonicalized first; ``bytes`` input is checked as is.
        """
        outcome = self._check_printable(context, input, max_length, allow_null)
        return self._unwrap(outcome, context, input, errors)

    # ── Redirect locations ──────────────────────────────────────────

    def is_valid_redirect_location(self, context: str, input: str | None, allow_null: bool) -> bool:
        return self.is_valid_input(context, input, "Redirect", MAX_REDIRECT_LENGTH, allow_null)

    def get_valid_redirect_location(
        self, context: str, input: str | None, allow_null: bool, errors: ValidationErrorList | None = None
    ) -> str | None:
        return self.get_valid_input(context, input, "Redirect", MAX_REDIRECT_LENGTH, allow_null, errors)

    # ── Directory paths and file names ──────────────────────────────

    def is_valid_directory_path(self, context: str, input: str | None, allow_null: bool) -> bool:
        """Note: fails for symlinked directories; pass the real path instead."""
        return self._predicate(lambda: self._files.check_directory_path(context, input, allow_null))

    def get_valid_directory_path(
        self, context: str, input: str | None, allow_null: bool, errors: ValidationErrorList | None = None
    ) -> str | None:
        """Return *input* if it is an existing path already in canonical form."""
        outcome = self._files.check_directory_path(context, input, allow_null)
        return self._unwrap(outcome, context, input, errors)

    def is_valid_file_name(self, context: str, input: str | None, allow_null: bool) -> bool:
        return self._predicate(lambda: self._files.check_file_name(context, input, allow_null))

    def get_valid_file_name(
        self, context: str, input: str | None, allow_null: bool, errors: ValidationErrorList | None = None
    ) -> str | None:
        outcome = self._files.check_file_name(context, input, allow_null)
        return self._unwrap(outcome, context, input, errors)

    def is_valid_file_content(self, context: str, input: bytes | None, max_bytes: int, allow_null: bool) -> bool:
        return self._predicate(lambda: self._files.check_file_content(context, input, max_bytes, allow_null))

    def get_valid_file_content(
        self,
        context: str,
        input: bytes | None,
        max_bytes: int,
        allow_null: bool,
        errors: ValidationErrorList | None = None,
    ) -> bytes | None:
        """Content no larger than *max_bytes* nor the global upload ceiling."""
        outcome = self._files.check_file_content(context, input, max_bytes, allow_null)
        return self._unwrap(outcome, context, input, errors)

    def is_valid_file_upload(
        self,
        context: str,
        directory_path: str | None,
        filename: str | None,
        content: bytes | None,
        max_bytes: int,
        allow_null: bool,
    ) -> bool:
        checks = self._files.upload_checks(context, directory_path, filename, content, max_bytes, allow_null)
        return all(self._predicate(check) for check in checks)

    def assert_valid_file_upload(
        self,
        context: str,
        directory_path: str | None,
        filename: str | None,
        content: bytes | None,
        max_bytes: int,
        allow_null: bool,
        errors: ValidationErrorList | None = None,
    ) -> None:
        """Check file name, directory path and content, in that order.

        Strict mode stops at the first failure.  With *errors*, all three
        checks run and every failure is appended.
        """
        checks = self._files.upload_checks(context, directory_path, filename, content, max_bytes, allow_null)
        for check in checks:
            self._unwrap(check(), context, None, errors)

    # ── HTTP requests ───────────────────────────────────────────────

    def is_valid_http_request(self, request: HTTPRequest | None) -> bool:
        return self._predicate(lambda: self._http.check_request(request))

    def assert_valid_http_request(
        self, request: HTTPRequest | None, errors: ValidationErrorList | None = None
    ) -> None:
        """Whitelist the method, every parameter, cookie and header.

        Raises:
            IntrusionError: For any method other than GET or POST, even when
                            *errors* is given.
            ValidationError: For the first name or value that fails.
        """
        self._unwrap(self._http.check_request(request), "HTTP request", None, errors)

    def is_valid_http_request_parameter_set(
        self, context: str, request: HTTPRequest | None, required: Iterable[str], optional: Iterable[str]
    ) -> bool:
        return self._predicate(lambda: self._http.check_parameter_set(context, request, required, optional))

    def assert_valid_http_request_parameter_set(
        self,
        context: str,
        request: HTTPRequest | None,
        required: Iterable[str],
        optional: Iterable[str],
        errors: ValidationErrorList | None = None,
    ) -> None:
        outcome = self._http.check_parameter_set(context, request, required, optional)
        self._unwrap(outcome, context, None, errors)

    # ── Streams ─────────────────────────────────────────────────────

    def safe_read_line(self, stream: BinaryIO, max_chars: int) -> str | None:
        """See ``inputguard.security.line_reader.safe_read_line``."""
        return safe_read_line(stream, max_chars)
