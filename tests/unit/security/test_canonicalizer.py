"""Canonicalization tests.

Single-layer encodings decode to their canonical form; layered or mixed
encodings are rejected in strict mode and logged in lenient mode.
"""

import logging

import pytest

from inputguard.core.errors import EncodingError
from inputguard.security.canonicalizer import (
    Canonicalizer,
    HTMLEntityCodec,
    PercentCodec,
    codecs_from_names,
)


@pytest.fixture()
def canonicalizer() -> Canonicalizer:
    return Canonicalizer([HTMLEntityCodec(), PercentCodec()])


# ── Codecs ──────────────────────────────────────────────────────────────


class TestCodecs:
    """Single-layer decoding by each codec."""

    def test_percent_decodes_one_layer(self) -> None:
        assert PercentCodec().decode("%253C") == "%3C"

    def test_percent_leaves_plus(self) -> None:
        assert PercentCodec().decode("a+b%20c") == "a+b c"

    def test_percent_invalid_utf8_raises(self) -> None:
        with pytest.raises(EncodingError):
            PercentCodec().decode("%FF")

    def test_html_decodes_one_layer(self) -> None:
        assert HTMLEntityCodec().decode("&amp;lt;") == "&lt;"

    def test_html_numeric_reference(self) -> None:
        assert HTMLEntityCodec().decode("&#60;&#x3e;") == "<>"

    def test_codecs_from_names(self) -> None:
        codecs = codecs_from_names(["PercentCodec", "HTMLEntityCodec"])
        assert [c.name for c in codecs] == ["PercentCodec", "HTMLEntityCodec"]

    def test_unknown_codec_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown codec"):
            codecs_from_names(["JavaScriptCodec"])

    def test_no_codecs_raises(self) -> None:
        with pytest.raises(ValueError, match="At least one codec"):
            codecs_from_names([])


# ── Canonicalize ────────────────────────────────────────────────────────


class TestCanonicalize:
    """Decode loop and layered-encoding detection."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("hello world", "hello world"),
            ("%3Cscript%3E", "<script>"),
            ("&lt;b&gt;", "<b>"),
            ("100%", "100%"),
            ("fish & chips", "fish & chips"),
            ("", ""),
        ],
        ids=["plain", "percent", "entity", "bare-percent", "bare-ampersand", "empty"],
    )
    def test_single_layer(self, canonicalizer: Canonicalizer, raw, expected) -> None:
        assert canonicalizer.canonicalize(raw) == expected

    def test_none_passes_through(self, canonicalizer: Canonicalizer) -> None:
        assert canonicalizer.canonicalize(None) is None

    @pytest.mark.parametrize(
        "raw",
        ["%253Cscript%253E", "&amp;lt;", "%26lt%3B", "%2526lt%253B"],
        ids=["double-percent", "double-entity", "percent-then-entity", "triple-mixed"],
    )
    def test_layered_encoding_rejected(self, canonicalizer: Canonicalizer, raw) -> None:
        with pytest.raises(EncodingError) as exc_info:
            canonicalizer.canonicalize(raw)
        assert "encoding" in exc_info.value.log_message

    def test_undecodable_rejected(self, canonicalizer: Canonicalizer) -> None:
        with pytest.raises(EncodingError):
            canonicalizer.canonicalize("%C3%28")

    @pytest.mark.parametrize("raw", ["plain", "a%3Cb", "&lt;tag&gt;", "x&amp;y"])
    def test_idempotent(self, canonicalizer: Canonicalizer, raw) -> None:
        once = canonicalizer.canonicalize(raw)
        assert canonicalizer.canonicalize(once) == once

    def test_from_names(self) -> None:
        c = Canonicalizer.from_names(["HTMLEntityCodec", "PercentCodec"])
        assert c.codec_names == ["HTMLEntityCodec", "PercentCodec"]
        assert c.strict is True

    def test_empty_codec_list_raises(self) -> None:
        with pytest.raises(ValueError):
            Canonicalizer([])


class TestLenientMode:
    """Lenient canonicalization logs instead of raising."""

    def test_returns_fully_decoded(self) -> None:
        c = Canonicalizer([HTMLEntityCodec(), PercentCodec()], strict=False)
        assert c.canonicalize("%253Cscript%253E") == "<script>"

    def test_logs_security_event(self, caplog: pytest.LogCaptureFixture) -> None:
        c = Canonicalizer([HTMLEntityCodec(), PercentCodec()], strict=False)
        with caplog.at_level(logging.WARNING, logger="inputguard.security"):
            c.canonicalize("&amp;lt;")
        assert "lenient_canonicalization" in caplog.text
        assert "Multiple (2x) encoding" in caplog.text
