"""Tests for Settings.

Verifies typed defaults, ``INPUTGUARD_`` environment overrides and
extension normalization.
"""

import pytest

from inputguard.core.config import Settings, get_allowed_extensions


class TestSettingsDefaults:
    """Typed defaults."""

    def test_max_upload_default(self) -> None:
        assert Settings().MAX_FILE_UPLOAD_BYTES == 500_000_000

    def test_default_extensions_include_pdf(self) -> None:
        assert ".pdf" in Settings().ALLOWED_FILE_EXTENSIONS

    def test_patterns_path_default_empty(self) -> None:
        assert Settings().VALIDATION_PATTERNS_PATH == ""

    def test_codecs_default(self) -> None:
        assert Settings().CANONICALIZER_CODECS == ["HTMLEntityCodec", "PercentCodec"]

    def test_strict_by_default(self) -> None:
        assert Settings().CANONICALIZE_STRICT is True

    def test_safe_html_excludes_script(self) -> None:
        assert "script" not in Settings().SAFE_HTML_TAGS


class TestSettingsEnvOverrides:
    """Settings read INPUTGUARD_ prefixed env vars."""

    def test_max_upload_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("INPUTGUARD_MAX_FILE_UPLOAD_BYTES", "1024")
        assert Settings().MAX_FILE_UPLOAD_BYTES == 1024

    def test_extensions_override_json(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("INPUTGUARD_ALLOWED_FILE_EXTENSIONS", '[".csv"]')
        assert Settings().ALLOWED_FILE_EXTENSIONS == [".csv"]

    def test_strict_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("INPUTGUARD_CANONICALIZE_STRICT", "false")
        assert Settings().CANONICALIZE_STRICT is False

    def test_unprefixed_var_ignored(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MAX_FILE_UPLOAD_BYTES", "7")
        assert Settings().MAX_FILE_UPLOAD_BYTES == 500_000_000


class TestAllowedExtensions:
    """get_allowed_extensions() normalizes the configured list."""

    def test_lowercases(self) -> None:
        settings = Settings(ALLOWED_FILE_EXTENSIONS=[".PDF", ".Txt"])
        assert get_allowed_extensions(settings) == [".pdf", ".txt"]

    def test_adds_leading_dot(self) -> None:
        settings = Settings(ALLOWED_FILE_EXTENSIONS=["csv"])
        assert get_allowed_extensions(settings) == [".csv"]

    def test_drops_blank_entries(self) -> None:
        settings = Settings(ALLOWED_FILE_EXTENSIONS=[" ", "", ".zip"])
        assert get_allowed_extensions(settings) == [".zip"]
