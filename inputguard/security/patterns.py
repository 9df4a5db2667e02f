"""Named whitelist patterns.

Ships a built-in set of patterns keyed by type name and can layer
application patterns from a YAML file on top of them::

    patterns:
      AccountName: '^[a-z0-9]{3,20}$'
      Redirect: '^/app/.*$'

Patterns are matched against the whole canonical value (``fullmatch``).
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

# ── Built-in patterns ───────────────────────────────────────────────────

DEFAULT_PATTERNS: dict[str, str] = {
    "SafeString": r"^[.a-zA-Z0-9\s]{0,1024}$",
    "Email": r"^[A-Za-z0-9._%'-]+@[A-Za-z0-9.-]+\.[a-zA-Z]{2,4}$",
    "IPAddress": (
        r"^(?:(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)\.){3}"
        r"(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)$"
    ),
    "URL": (
        r"^(ht|f)tp(s?)://[0-9a-zA-Z]([-.\w]*[0-9a-zA-Z])*(:[0-9]*)*(/?)"
        r"([a-zA-Z0-9\-.?,:'/\\+=&%$#_]*)?$"
    ),
    "CreditCard": r"^(\d{4}[- ]?){3}\d{4}$",
    "SSN": r"^(?!000)([0-6]\d{2}|7([0-6]\d|7[012]))([ -]?)(?!00)\d\d\3(?!0000)\d{4}$",
    "AccountName": r"^[a-zA-Z0-9]{3,20}$",
    "SystemCommand": r"^[a-zA-Z\-/]{1,64}$",
    "RoleName": r"^[a-z]{1,20}$",
    "Redirect": r"^/.*$",
    "HTTPScheme": r"^(http|https)$",
    "HTTPServerName": r"^[a-zA-Z0-9_.\-]*$",
    "HTTPParameterName": r"^[a-zA-Z0-9_]{1,32}$",
    "HTTPParameterValue": r"^[a-zA-Z0-9.\-/+=_ ]*$",
    "HTTPCookieName": r"^[a-zA-Z0-9\-_]{1,32}$",
    "HTTPCookieValue": r"^[a-zA-Z0-9\-/+=_ ]*$",
    "HTTPHeaderName": r"^[a-zA-Z0-9\-_]{1,32}$",
    "HTTPHeaderValue": r"^[a-zA-Z0-9()\-=*.?;,+/:&_ ]*$",
    "HTTPContextPath": r"^[a-zA-Z0-9.\-_]*$",
    "HTTPPath": r"^[a-zA-Z0-9.\-_]*$",
    "HTTPQueryString": r"^[a-zA-Z0-9()\-=*.?;,+/:&_ %]*$",
    "HTTPURI": r"^[a-zA-Z0-9()\-=*.?;,+/:&_ ]*$",
    "HTTPURL": r"^.*$",
    "HTTPJSESSIONID": r"^[A-Z0-9]{10,30}$",
    "FileName": r"^[a-zA-Z0-9!@#$%^&{}\[\]()_+\-=,.~'` ]{1,255}$",
    "DirectoryName": r"^[a-zA-Z0-9:/\\!@#$%^&{}\[\]()_+\-=,.~'` ]{1,255}$",
}


# ── Registry ────────────────────────────────────────────────────────────


class PatternRegistry:
    """Compiled whitelist patterns keyed by type name.

    Args:
        overrides: Extra or replacement patterns applied over the built-ins.
        include_defaults: When ``False`` only *overrides* are registered.

    Raises:
        ValueError: If a pattern is not a string or does not compile.
    """

    def __init__(
        self,
        overrides: Mapping[str, str] | None = None,
        include_defaults: bool = True,
    ) -> None:
        self._patterns: dict[str, re.Pattern[str]] = {}
        if include_defaults:
            for name, regex in DEFAULT_PATTERNS.items():
                self._patterns[name] = re.compile(regex)
        for name, regex in (overrides or {}).items():
            self._patterns[name] = _compile(name, regex)

    @classmethod
    def from_yaml(cls, path: str | Path, include_defaults: bool = True) -> "PatternRegistry":
        """Load patterns from a YAML file with a top-level ``patterns`` key.

        Raises:
            FileNotFoundError: If the YAML file does not exist.
            ValueError: If the YAML is invalid or malformed.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Pattern config not found: {path}")

        raw = path.read_text(encoding="utf-8")
        try:
            data: Any = yaml.safe_load(raw)
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {path}: {exc}") from exc

        if not isinstance(data, dict) or "patterns" not in data:
            raise ValueError(f"YAML must contain a top-level 'patterns' key in {path}")

        patterns = data["patterns"] or {}
        if not isinstance(patterns, dict):
            raise ValueError(f"'patterns' must be a mapping of type name to regex in {path}")

        try:
            return cls(patterns, include_defaults=include_defaults)
        except ValueError as exc:
            raise ValueError(f"{exc} in {path}") from exc

    # ── Access ──────────────────────────────────────────────────────

    def get(self, name: str) -> re.Pattern[str] | None:
        """Return the compiled pattern for *name*, or ``None``."""
        return self._patterns.get(name)

    def names(self) -> set[str]:
        """Return the set of all registered type names."""
        return set(self._patterns.keys())

    def __contains__(self, name: object) -> bool:
        return name in self._patterns

    def __len__(self) -> int:
        return len(self._patterns)


def _compile(name: str, regex: Any) -> re.Pattern[str]:
    if not isinstance(regex, str):
        raise ValueError(f"Pattern '{name}' must be a string")
    try:
        return re.compile(regex)
    except re.error as exc:
        raise ValueError(f"Pattern '{name}' does not compile: {exc}") from exc
