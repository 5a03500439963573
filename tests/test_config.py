import pytest
from fastapi.testclient import TestClient

from garden_alerts.config import Settings, load_settings
from garden_alerts.exceptions import ConfigurationError
from garden_alerts.main import create_app

from conftest import FakeMailer, FakeProvider, make_catalog_client


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in ("EMAIL_USER", "EMAIL_PASS", "UPSTREAM_MODE", "POLL_INTERVAL_SECONDS", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_missing_credentials_fail_fast(clean_env):
    with pytest.raises(ConfigurationError, match="EMAIL_USER or EMAIL_PASS"):
        load_settings()


def test_blank_credentials_fail_fast(clean_env):
    clean_env.setenv("EMAIL_USER", "bot@mail.com")
    clean_env.setenv("EMAIL_PASS", "   ")

    with pytest.raises(ConfigurationError):
        load_settings()


def test_settings_from_environment(clean_env):
    clean_env.setenv("EMAIL_USER", "bot@mail.com")
    clean_env.setenv("EMAIL_PASS", "secret")
    clean_env.setenv("UPSTREAM_MODE", "stream")

    settings = load_settings()

    assert settings.upstream_mode == "stream"
    assert settings.poll_interval_seconds == 15
    assert settings.require_verification is True
    assert settings.mail_sender == '"Grow A Garden Bot" <bot@mail.com>'


def test_invalid_value_is_configuration_error(clean_env):
    clean_env.setenv("POLL_INTERVAL_SECONDS", "-1")

    with pytest.raises(ConfigurationError, match="Invalid configuration"):
        load_settings(email_user="bot@mail.com", email_pass="secret")


def test_startup_fails_when_mail_relay_is_unreachable(settings: Settings):
    app = create_app(
        settings,
        provider=FakeProvider(),
        mailer=FakeMailer(verify_error="535 authentication failed"),
        catalog_client=make_catalog_client(),
    )

    with pytest.raises(ConfigurationError, match="535 authentication failed"):
        with TestClient(app):
            pass


def test_log_level_is_case_insensitive(clean_env):
    clean_env.setenv("LOG_LEVEL", "debug")

    assert load_settings(email_user="bot@mail.com", email_pass="secret").log_level == "DEBUG"


def test_unknown_log_level_is_configuration_error(clean_env):
    clean_env.setenv("LOG_LEVEL", "verbose")

    with pytest.raises(ConfigurationError, match="Invalid configuration"):
        load_settings(email_user="bot@mail.com", email_pass="secret")
