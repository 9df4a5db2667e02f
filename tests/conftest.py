"""Shared fixtures for inputguard tests."""

import pytest

from inputguard.core.config import Settings
from inputguard.validation.validator import Validator


@pytest.fixture()
def settings() -> Settings:
    """Default settings with a short extension list."""
    return Settings(ALLOWED_FILE_EXTENSIONS=[".pdf", ".txt"])


@pytest.fixture()
def validator(settings: Settings) -> Validator:
    """Caller-facing validator with its dedicated filesystem validator."""
    return Validator.from_settings(settings)
