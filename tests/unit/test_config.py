"""Tests for configuration, settings, logging and error payloads."""

import logging

import pytest
from pydantic import ValidationError

from keycloak_session.config.logging_config import (
    LoggingConfig,
    LoggingMode,
    get_log_level_from_verbosity,
    mask_token,
)
from keycloak_session.config.settings import KeycloakSessionSettings
from keycloak_session.core.exceptions import (
    ClientNotInitializedError,
    ConfigurationError,
    RefreshFailure,
    create_error_response,
)
from keycloak_session.features.session.adapters.memory_storage import MemorySessionStorage
from keycloak_session.features.session.adapters.redis_storage import RedisSessionStorage
from keycloak_session.features.session.entities.keycloak_config import KeycloakConfig


class TestKeycloakConfig:
    """Test configuration validation and defaults."""

    def test_defaults(self):
        config = KeycloakConfig(url="https://sso.example.com", realm="acme", client_id="web")

        assert config.refresh_seconds_before_token_expires == 120
        assert config.token_refresh_interval_seconds == 10
        assert config.configuration_name == "default"
        assert config.logging is LoggingMode.OFF
        assert config.scope is None

    def test_well_known_url_default(self):
        config = KeycloakConfig(url="https://sso.example.com", realm="acme", client_id="web")

        assert config.well_known_url == "https://sso.example.com/realms/acme/.well-known/openid-configuration"

    def test_well_known_url_prefix_override(self):
        config = KeycloakConfig(
            url="https://sso.example.com",
            realm="acme",
            client_id="web",
            well_known_url_prefix="https://idp.example.com/oidc/",
        )

        assert config.well_known_url == "https://idp.example.com/oidc/.well-known/openid-configuration"

    @pytest.mark.parametrize(
        "url",
        ["https://sso.example.com/auth", "https://sso.example.com/auth/", " https://sso.example.com/ "],
    )
    def test_url_normalized(self, url):
        config = KeycloakConfig(url=url, realm="acme", client_id="web")

        assert config.url == "https://sso.example.com"

    def test_invalid_url(self):
        with pytest.raises(ValidationError):
            KeycloakConfig(url="sso.example.com", realm="acme", client_id="web")

    @pytest.mark.parametrize("field", ["realm", "client_id", "configuration_name"])
    def test_empty_identifiers_rejected(self, field):
        values = {"url": "https://sso.example.com", "realm": "acme", "client_id": "web", field: " "}

        with pytest.raises(ValidationError):
            KeycloakConfig(**values)

    def test_invalid_refresh_timing(self):
        with pytest.raises(ValidationError):
            KeycloakConfig(url="https://sso.example.com", realm="acme", client_id="web", token_refresh_interval_seconds=0)
        with pytest.raises(ValidationError):
            KeycloakConfig(
                url="https://sso.example.com", realm="acme", client_id="web", refresh_seconds_before_token_expires=-1
            )

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError):
            KeycloakConfig(url="https://sso.example.com", realm="acme", client_id="web", clientId="web")

    def test_immutable(self):
        config = KeycloakConfig(url="https://sso.example.com", realm="acme", client_id="web")

        with pytest.raises(ValidationError):
            config.realm = "other"

    def test_logging_mode_from_string(self):
        config = KeycloakConfig(url="https://sso.example.com", realm="acme", client_id="web", logging="both")

        assert config.logging is LoggingMode.BOTH


class TestKeycloakSessionSettings:
    """Test environment-driven settings."""

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("KEYCLOAK_SESSION_URL", "https://sso.example.com/auth")
        monkeypatch.setenv("KEYCLOAK_SESSION_REALM", "acme")
        monkeypatch.setenv("KEYCLOAK_SESSION_CLIENT_ID", "web")
        monkeypatch.setenv("KEYCLOAK_SESSION_CONFIGURATION_NAME", "admin")
        monkeypatch.setenv("KEYCLOAK_SESSION_TOKEN_REFRESH_INTERVAL_SECONDS", "5")
        monkeypatch.setenv("KEYCLOAK_SESSION_LOGGING", "wrapper")

        config = KeycloakSessionSettings(_env_file=None).to_config()

        assert config.url == "https://sso.example.com"
        assert config.realm == "acme"
        assert config.configuration_name == "admin"
        assert config.token_refresh_interval_seconds == 5
        assert config.logging is LoggingMode.WRAPPER

    def test_missing_required(self, monkeypatch):
        monkeypatch.delenv("KEYCLOAK_SESSION_URL", raising=False)
        monkeypatch.delenv("KEYCLOAK_SESSION_REALM", raising=False)
        monkeypatch.delenv("KEYCLOAK_SESSION_CLIENT_ID", raising=False)

        with pytest.raises(ValidationError):
            KeycloakSessionSettings(_env_file=None)

    def test_redis_storage_from_environment(self, monkeypatch):
        monkeypatch.setenv("KEYCLOAK_SESSION_REDIS_URL", "redis://cache:6379/2")
        monkeypatch.setenv("KEYCLOAK_SESSION_STORAGE_KEY_PREFIX", "tab-7")
        monkeypatch.setenv("KEYCLOAK_SESSION_STORAGE_TTL_SECONDS", "900")

        storage = KeycloakSessionSettings(
            _env_file=None, url="https://sso.example.com", realm="acme", client_id="web"
        ).to_storage()

        assert isinstance(storage, RedisSessionStorage)
        assert storage.redis_url == "redis://cache:6379/2"
        assert storage.key_prefix == "tab-7"
        assert storage.ttl_seconds == 900

    def test_memory_storage_without_redis_url(self, monkeypatch):
        monkeypatch.delenv("KEYCLOAK_SESSION_REDIS_URL", raising=False)

        storage = KeycloakSessionSettings(
            _env_file=None, url="https://sso.example.com", realm="acme", client_id="web"
        ).to_storage()

        assert isinstance(storage, MemorySessionStorage)

    def test_invalid_storage_ttl(self):
        with pytest.raises(ValidationError):
            KeycloakSessionSettings(
                _env_file=None,
                url="https://sso.example.com",
                realm="acme",
                client_id="web",
                storage_ttl_seconds=0,
            )


class TestLoggingConfig:
    """Test logging mode selection."""

    @pytest.mark.parametrize(
        "mode,wrapper,provider",
        [
            (LoggingMode.OFF, False, False),
            (LoggingMode.WRAPPER, True, False),
            (LoggingMode.PROVIDER, False, True),
            (LoggingMode.BOTH, True, True),
        ],
    )
    def test_mode_flags(self, mode, wrapper, provider):
        assert mode.wrapper_enabled is wrapper
        assert mode.provider_enabled is provider

    def test_apply_mode_sets_levels(self):
        LoggingConfig.apply_mode(LoggingMode.PROVIDER)

        assert logging.getLogger("keycloak_session").level == logging.WARNING
        assert logging.getLogger("keycloak_session.provider").level == logging.DEBUG
        assert logging.getLogger("keycloak").level == logging.DEBUG

        LoggingConfig.apply_mode(LoggingMode.OFF)

        assert logging.getLogger("keycloak_session.provider").level == logging.WARNING

    @pytest.mark.parametrize(
        "verbosity,level",
        [("quiet", "ERROR"), ("NORMAL", "WARNING"), ("verbose", "INFO"), ("debug", "DEBUG"), ("loud", "WARNING")],
    )
    def test_verbosity_levels(self, verbosity, level):
        assert get_log_level_from_verbosity(verbosity) == level

    def test_configure_from_environment(self, monkeypatch):
        monkeypatch.setenv("LOG_VERBOSITY", "VERBOSE")
        monkeypatch.setenv("LOG_FORMAT", "detailed")

        LoggingConfig.configure()

        assert logging.getLogger("keycloak_session").level == logging.INFO

    def test_configure_log_level_override(self, monkeypatch):
        monkeypatch.setenv("LOG_VERBOSITY", "QUIET")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        LoggingConfig.configure()

        assert logging.getLogger("keycloak_session").level == logging.DEBUG

    @pytest.mark.parametrize(
        "token,masked",
        [(None, "<none>"), ("short", "***"), ("abcdefgh-0123456789-ijklmnop", "abcdefgh...ijklmnop")],
    )
    def test_mask_token(self, token, masked):
        assert mask_token(token) == masked


class TestErrorPayloads:
    """Test structured exceptions."""

    def test_missing_configuration(self):
        error = ConfigurationError.missing("admin")

        assert error.error_code == "missing_configuration"
        assert error.details == {"configuration_name": "admin"}
        assert "admin" in str(error)

    def test_client_not_initialized_is_configuration_error(self):
        error = ClientNotInitializedError("admin", "login")

        assert isinstance(error, ConfigurationError)
        assert error.operation == "login"

    def test_default_error_code(self):
        assert RefreshFailure("boom").error_code == "RefreshFailure"

    def test_create_error_response(self):
        payload = create_error_response(ConfigurationError.missing("admin"))

        assert payload == {
            "error": {
                "code": "missing_configuration",
                "message": "Missing configuration: 'admin' was never initialized",
                "details": {"configuration_name": "admin"},
                "type": "ConfigurationError",
            }
        }
