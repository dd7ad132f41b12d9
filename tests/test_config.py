import pytest
from pydantic import ValidationError

from dispatch_service.core.config import DispatchServiceSettings


def test_defaults():
    settings = DispatchServiceSettings(_env_file=None)
    assert settings.store_backend == "sql"
    assert settings.autosave_interval_seconds == 300.0
    assert settings.json_logs is False


def test_environment_and_log_level_are_normalised(monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "Staging")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("STORE_BACKEND", "memory")

    settings = DispatchServiceSettings(_env_file=None)

    assert settings.environment == "staging"
    assert settings.log_level == "DEBUG"
    assert settings.store_backend == "memory"
    assert settings.json_logs is True


def test_unknown_log_level_rejected():
    with pytest.raises(ValidationError):
        DispatchServiceSettings(log_level="chatty", _env_file=None)


def test_production_needs_a_real_secret():
    with pytest.raises(ValidationError):
        DispatchServiceSettings(environment="production", jwt_secret_key="CHANGE-ME", _env_file=None)

    settings = DispatchServiceSettings(environment="production", jwt_secret_key="s3cret", _env_file=None)
    assert settings.is_production
