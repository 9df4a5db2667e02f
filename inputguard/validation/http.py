"""HTTP request surface validation.

Whitelists every parameter, cookie and header (name and each value) of a
request, and checks that the parameter names present are exactly the
required names plus any of the optional ones.

A method other than GET or POST is treated as probing and produces an
``IntrusionError`` rather than a ``ValidationError``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Protocol

from starlette.datastructures import FormData
from starlette.requests import Request

from inputguard.core.errors import IntrusionError
from inputguard.security.audit import SecuritySeverity, log_security_event
from inputguard.validation.outcome import ValidationOutcome, invalid

MAX_PARAMETER_NAME_LENGTH = 100
MAX_PARAMETER_VALUE_LENGTH = 65535

ALLOWED_METHODS = frozenset({"GET", "POST"})

InputCheck = Callable[[str, str | None, str, int, bool], ValidationOutcome]


class HTTPRequest(Protocol):
    """The parts of an HTTP request that get validated."""

    method: str
    parameters: Mapping[str, Sequence[str]]
    cookies: Sequence[tuple[str, str]]
    headers: Mapping[str, Sequence[str]]


@dataclass(frozen=True)
class RequestSurface:
    """Plain snapshot of a request's method, parameters, cookies and headers.

    Attributes:
        method:     HTTP method, compared case-sensitively.
        parameters: Parameter name to ordered values.
        cookies:    ``(name, value)`` pairs in request order.
        headers:    Header name to ordered values.
    """

    method: str
    parameters: Mapping[str, Sequence[str]] = field(default_factory=dict)
    cookies: Sequence[tuple[str, str]] = ()
    headers: Mapping[str, Sequence[str]] = field(default_factory=dict)

    @classmethod
    def from_starlette(cls, request: Request, form: FormData | None = None) -> "RequestSurface":
        """Build from a Starlette request.

        Query parameters are always included.  Pass the awaited
        ``request.form()`` as *form* to include form fields too; uploaded
        files are skipped.
        """
        parameters: dict[str, list[str]] = {}
        for name, value in request.query_params.multi_items():
            parameters.setdefault(name, []).append(value)
        if form is not None:
            for name, value in form.multi_items():
                if isinstance(value, str):
                    parameters.setdefault(name, []).append(value)

        headers: dict[str, list[str]] = {}
        for name, value in request.headers.items():
            headers.setdefault(name, []).append(value)

        return cls(
            method=request.method,
            parameters=parameters,
            cookies=tuple(request.cookies.items()),
            headers=headers,
        )


class HTTPSurfaceChecker:
    """Request-level checks built on a whitelist input check.

    Args:
        check_input: Whitelist check of the caller-facing validator.
    """

    def __init__(self, check_input: InputCheck) -> None:
        self._check_input = check_input

    def check_request(self, request: HTTPRequest | None) -> ValidationOutcome:
        if request is None:
            return invalid(
                "input_required",
                "HTTP request",
                "Input required: HTTP request is null",
                "Input required: HTTP request is null",
            )

        if request.method not in ALLOWED_METHODS:
            detail = f"Bad HTTP method received: {request.method!r}"
            log_security_event("bad_http_method", SecuritySeverity.CRITICAL, detail)
            return ValidationOutcome.reject(
                IntrusionError("Bad HTTP method received", detail, context="HTTP request")
            )

        for name, values in request.parameters.items():
            outcome = self._check_pair(
                "HTTP request parameter", name, values, "HTTPParameterName", "HTTPParameterValue"
            )
            if not outcome.ok:
                return outcome

        for name, value in request.cookies:
            outcome = self._check_pair(
                "HTTP request cookie", name, (value,), "HTTPCookieName", "HTTPCookieValue"
            )
            if not outcome.ok:
                return outcome

        for name, values in request.headers.items():
            if name is None or name.lower() == "cookie":
                continue
            outcome = self._check_pair(
                "HTTP request header", name, values, "HTTPHeaderName", "HTTPHeaderValue"
            )
            if not outcome.ok:
                return outcome

        return ValidationOutcome.accept(None)

    def _check_pair(
        self, label: str, name: str, values: Iterable[str], name_type: str, value_type: str
    ) -> ValidationOutcome:
        outcome = self._check_input(f"{label} name", name, name_type, MAX_PARAMETER_NAME_LENGTH, False)
        if not outcome.ok:
            return outcome
        for value in values:
            outcome = self._check_input(
                f"{label} value", value, value_type, MAX_PARAMETER_VALUE_LENGTH, True
            )
            if not outcome.ok:
                return outcome
        return ValidationOutcome.accept(None)

    def check_parameter_set(
        self,
        context: str,
        request: HTTPRequest | None,
        required: Iterable[str],
        optional: Iterable[str],
    ) -> ValidationOutcome:
        """Parameter names must be all of *required* plus only *optional*.

        Missing names are reported before extra ones.
        """
        if request is None:
            return invalid(
                "input_required",
                context,
                f"{context}: Input required: HTTP request is null",
                f"Input required: HTTP request is null: context={context}",
            )

        required = set(required)
        actual = set(request.parameters.keys())

        missing = required - actual
        if missing:
            return invalid(
                "parameter_set",
                context,
                f"{context}: Invalid HTTP request missing parameters",
                f"Invalid HTTP request missing parameters {sorted(missing)}: context={context}",
            )

        extra = actual - required - set(optional)
        if extra:
            return invalid(
                "parameter_set",
                context,
                f"{context}: Invalid HTTP request extra parameters",
                f"Invalid HTTP request extra parameters {sorted(extra)}: context={context}",
            )
        return ValidationOutcome.accept(None)
