"""Settings for inputguard.

Centralized security configuration.  All settings are loaded from
environment variables with the ``INPUTGUARD_`` prefix; list values are
given as JSON (``INPUTGUARD_ALLOWED_FILE_EXTENSIONS='[".pdf", ".txt"]'``).
Settings are read once when the validators are built and treated as
read-only afterwards.
"""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """inputguard configuration.

    All fields can be overridden by environment variables prefixed with
    ``INPUTGUARD_``.  For example, ``INPUTGUARD_MAX_FILE_UPLOAD_BYTES=1024``
    lowers the global upload ceiling.
    """

    # ── File uploads ────────────────────────────────────────────────
    ALLOWED_FILE_EXTENSIONS: list[str] = [
        ".zip", ".pdf", ".doc", ".docx", ".ppt", ".pptx", ".tar", ".gz",
        ".tgz", ".rar", ".war", ".jar", ".ear", ".xls", ".rtf",
        ".properties", ".java", ".class", ".txt", ".xml", ".jsp", ".jsf",
        ".exe", ".dll",
    ]
    MAX_FILE_UPLOAD_BYTES: int = 500_000_000  # Authoritative over per-call limits

    # ── Whitelist patterns ──────────────────────────────────────────
    VALIDATION_PATTERNS_PATH: str = ""  # Optional YAML layered over built-ins

    # ── Canonicalization ────────────────────────────────────────────
    CANONICALIZER_CODECS: list[str] = ["HTMLEntityCodec", "PercentCodec"]
    CANONICALIZE_STRICT: bool = True  # Multiple/mixed encoding is an error

    # ── Safe HTML policy ────────────────────────────────────────────
    SAFE_HTML_TAGS: list[str] = [
        "a", "abbr", "b", "blockquote", "br", "code", "em", "i", "li",
        "ol", "p", "pre", "strong", "ul",
    ]
    SAFE_HTML_ATTRIBUTES: list[str] = ["href", "title"]
    SAFE_HTML_PROTOCOLS: list[str] = ["http", "https", "mailto"]

    model_config = {
        "env_prefix": "INPUTGUARD_",
    }


def get_allowed_extensions(settings: Settings) -> list[str]:
    """Return the configured extensions, lowercased with a leading dot.

    Empty entries are dropped.
    """
    extensions: list[str] = []
    for ext in settings.ALLOWED_FILE_EXTENSIONS:
        ext = ext.strip().lower()
        if not ext:
            continue
        if not ext.startswith("."):
            ext = "." + ext
        extensions.append(ext)
    return extensions
