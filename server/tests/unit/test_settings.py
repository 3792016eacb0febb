"""Unit tests for application settings."""

import pytest
from pydantic import ValidationError

from safari_api.core.config import Settings


def test_environment_and_log_level_are_normalized():
    settings = Settings(environment="Staging", log_level="debug")

    assert settings.environment == "staging"
    assert settings.log_level == "DEBUG"
    assert settings.debug is False


def test_cors_origins_from_comma_separated_string():
    settings = Settings(cors_origins="https://safari.example.com, https://admin.example.com")

    assert settings.cors_origins == ["https://safari.example.com", "https://admin.example.com"]


def test_production_requires_token_secret():
    with pytest.raises(ValidationError):
        Settings(environment="production")

    assert Settings(environment="production", bearer_token_secret="s3cret").is_production


@pytest.mark.parametrize("field, value", [
    ("environment", "qa"),
    ("log_level", "verbose"),
    ("booking_retry_attempts", 0),
])
def test_invalid_values_rejected(field, value):
    with pytest.raises(ValidationError):
        Settings(**{field: value})
