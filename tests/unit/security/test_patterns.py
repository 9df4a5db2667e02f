"""Tests for PatternRegistry: built-ins and YAML loading."""

from pathlib import Path

import pytest

from inputguard.security.patterns import DEFAULT_PATTERNS, PatternRegistry


class TestDefaults:
    """Built-in whitelist patterns."""

    def test_defaults_registered(self) -> None:
        registry = PatternRegistry()
        assert len(registry) == len(DEFAULT_PATTERNS)
        assert "DirectoryName" in registry
        assert "FileName" in registry

    def test_get_unknown_returns_none(self) -> None:
        assert PatternRegistry().get("NoSuchType") is None

    @pytest.mark.parametrize(
        "type_name,value",
        [
            ("AccountName", "alice99"),
            ("Email", "bob@example.com"),
            ("IPAddress", "192.168.0.1"),
            ("HTTPParameterName", "page_size"),
            ("Redirect", "/account/home"),
            ("FileName", "report (final).pdf"),
        ],
    )
    def test_default_accepts(self, type_name, value) -> None:
        assert PatternRegistry().get(type_name).fullmatch(value)

    @pytest.mark.parametrize(
        "type_name,value",
        [
            ("AccountName", "al"),
            ("Email", "bob@"),
            ("IPAddress", "256.1.1.1"),
            ("HTTPParameterName", "a" * 33),
            ("Redirect", "http://evil.example"),
            ("FileName", "../passwd"),
        ],
    )
    def test_default_rejects(self, type_name, value) -> None:
        assert not PatternRegistry().get(type_name).fullmatch(value)

    def test_overrides_replace_defaults(self) -> None:
        registry = PatternRegistry({"Redirect": r"^/app/.*$"})
        assert not registry.get("Redirect").fullmatch("/other")

    def test_without_defaults(self) -> None:
        registry = PatternRegistry({"Zip": r"^\d{5}$"}, include_defaults=False)
        assert registry.names() == {"Zip"}

    def test_bad_regex_raises(self) -> None:
        with pytest.raises(ValueError, match="does not compile"):
            PatternRegistry({"Broken": "[a-"})


class TestFromYaml:
    """Loading application patterns from YAML."""

    def test_loads_and_layers(self, tmp_path: Path) -> None:
        cfg = tmp_path / "patterns.yaml"
        cfg.write_text("patterns:\n  Zip: '^[0-9]{5}$'\n  Redirect: '^/app/.*$'\n")
        registry = PatternRegistry.from_yaml(cfg)
        assert registry.get("Zip").fullmatch("12345")
        assert registry.get("Redirect").fullmatch("/app/x")
        assert "SafeString" in registry

    def test_include_defaults_false(self, tmp_path: Path) -> None:
        cfg = tmp_path / "patterns.yaml"
        cfg.write_text("patterns:\n  Zip: '^[0-9]{5}$'\n")
        assert PatternRegistry.from_yaml(cfg, include_defaults=False).names() == {"Zip"}

    def test_empty_patterns_section(self, tmp_path: Path) -> None:
        cfg = tmp_path / "patterns.yaml"
        cfg.write_text("patterns:\n")
        assert len(PatternRegistry.from_yaml(cfg)) == len(DEFAULT_PATTERNS)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError, match="Pattern config not found"):
            PatternRegistry.from_yaml(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        cfg = tmp_path / "patterns.yaml"
        cfg.write_text("patterns: [unclosed\n")
        with pytest.raises(ValueError, match="Invalid YAML"):
            PatternRegistry.from_yaml(cfg)

    def test_missing_patterns_key(self, tmp_path: Path) -> None:
        cfg = tmp_path / "patterns.yaml"
        cfg.write_text("rules:\n  Zip: x\n")
        with pytest.raises(ValueError, match="top-level 'patterns' key"):
            PatternRegistry.from_yaml(cfg)

    def test_patterns_not_mapping(self, tmp_path: Path) -> None:
        cfg = tmp_path / "patterns.yaml"
        cfg.write_text("patterns:\n  - a\n  - b\n")
        with pytest.raises(ValueError, match="must be a mapping"):
            PatternRegistry.from_yaml(cfg)

    def test_non_string_pattern(self, tmp_path: Path) -> None:
        cfg = tmp_path / "patterns.yaml"
        cfg.write_text("patterns:\n  Count: 5\n")
        with pytest.raises(ValueError, match="must be a string"):
            PatternRegistry.from_yaml(cfg)

    def test_bad_regex_names_file(self, tmp_path: Path) -> None:
        cfg = tmp_path / "patterns.yaml"
        cfg.write_text("patterns:\n  Broken: '[a-'\n")
        with pytest.raises(ValueError, match="patterns.yaml"):
            PatternRegistry.from_yaml(cfg)
