"""Canonicalization gateway.

Reduces untrusted text to its canonical form by repeatedly applying every
configured codec until none of them changes the value.  A value is
canonical iff re-applying any codec yields no change, so every whitelist
comparison downstream sees exactly what a later decoder would see.

Input that only reaches its fixed point after more than one decode round
(``%253C``) or after decoding with more than one codec (``%26lt;``) is
treated as an attack in strict mode and raises ``EncodingError``.
"""

from __future__ import annotations

import html
from abc import ABC, abstractmethod
from collections.abc import Iterable
from urllib.parse import unquote

from inputguard.core.errors import EncodingError
from inputguard.security.audit import SecuritySeverity, log_security_event


# ── Codecs ──────────────────────────────────────────────────────────────


class Codec(ABC):
    """A single decode transform.

    ``decode`` removes exactly one layer of encoding and must return the
    input unchanged when there is nothing to decode.
    """

    name: str = ""

    @abstractmethod
    def decode(self, text: str) -> str:
        """Remove one layer of encoding from *text*."""


class HTMLEntityCodec(Codec):
    """Named, decimal and hexadecimal HTML character references."""

    name = "HTMLEntityCodec"

    def decode(self, text: str) -> str:
        if "&" not in text:
            return text
        return html.unescape(text)


class PercentCodec(Codec):
    """URL percent-encoding (``%XX``); ``+`` is left alone."""

    name = "PercentCodec"

    def decode(self, text: str) -> str:
        if "%" not in text:
            return text
        try:
            return unquote(text, encoding="utf-8", errors="strict")
        except UnicodeDecodeError as exc:
            raise EncodingError(
                "Invalid input. Encoding problem detected.",
                f"Percent-encoded bytes are not valid UTF-8: {exc}",
                cause=exc,
            ) from exc


_CODECS: dict[str, type[Codec]] = {
    HTMLEntityCodec.name: HTMLEntityCodec,
    PercentCodec.name: PercentCodec,
}


def codecs_from_names(names: Iterable[str]) -> list[Codec]:
    """Instantiate codecs by name.

    Raises:
        ValueError: If a name is unknown or no names are given.
    """
    codecs: list[Codec] = []
    for name in names:
        if name not in _CODECS:
            raise ValueError(f"Unknown codec '{name}'. Valid codecs: {sorted(_CODECS)}")
        codecs.append(_CODECS[name]())
    if not codecs:
        raise ValueError("At least one codec is required")
    return codecs


# ── Canonicalizer ───────────────────────────────────────────────────────


class Canonicalizer:
    """Decode loop over a fixed list of codecs.

    Args:
        codecs: Codecs applied in order on every round.
        strict: When ``True``, multiple or mixed encoding raises
                ``EncodingError``; otherwise it is logged and the fully
                decoded value is returned.
    """

    def __init__(self, codecs: Iterable[Codec], strict: bool = True) -> None:
        self._codecs = tuple(codecs)
        if not self._codecs:
            raise ValueError("At least one codec is required")
        self.strict = strict

    @classmethod
    def from_names(cls, names: Iterable[str], strict: bool = True) -> "Canonicalizer":
        return cls(codecs_from_names(names), strict=strict)

    @property
    def codec_names(self) -> list[str]:
        return [codec.name for codec in self._codecs]

    def canonicalize(self, text: str | None) -> str | None:
        """Return the canonical form of *text*.

        Raises:
            EncodingError: On undecodable input, or (strict mode) on
                           multiple or mixed encoding.
        """
        if text is None:
            return None

        working = text
        found_rounds = 0
        mixed_count = 0
        last_codec: Codec | None = None
        clean = False
        # Every successful decode shortens the string, so this terminates.
        while not clean:
            clean = True
            for codec in self._codecs:
                decoded = codec.decode(working)
                if decoded == working:
                    continue
                if last_codec is not None and last_codec is not codec:
                    mixed_count += 1
                last_codec = codec
                if clean:
                    found_rounds += 1
                clean = False
                working = decoded

        if found_rounds >= 2 and mixed_count > 1:
            self._report(
                f"Multiple ({found_rounds}x) and mixed encoding ({mixed_count}x) detected in {text!r}"
            )
        elif found_rounds >= 2:
            self._report(f"Multiple ({found_rounds}x) encoding detected in {text!r}")
        elif mixed_count > 1:
            self._report(f"Mixed encoding ({mixed_count}x) detected in {text!r}")
        return working

    def _report(self, detail: str) -> None:
        if self.strict:
            raise EncodingError("Input validation failure", detail)
        log_security_event("lenient_canonicalization", SecuritySeverity.MEDIUM, detail)
