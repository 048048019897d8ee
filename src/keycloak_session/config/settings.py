"""Environment-driven settings for keycloak-session.

Lets services describe one identity-provider configuration through
``KEYCLOAK_SESSION_*`` environment variables (or a ``.env`` file) instead of
building ``KeycloakConfig`` by hand.
"""
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..features.session.entities.keycloak_config import (
    DEFAULT_CONFIGURATION_NAME,
    DEFAULT_REFRESH_INTERVAL_SECONDS,
    DEFAULT_REFRESH_LEAD_SECONDS,
    KeycloakConfig,
)
from ..features.session.adapters.memory_storage import MemorySessionStorage
from ..features.session.adapters.redis_storage import RedisSessionStorage
from ..features.session.entities.protocols import SessionStorage
from .logging_config import LoggingMode


class KeycloakSessionSettings(BaseSettings):
    """Settings for a single Keycloak session configuration."""

    model_config = SettingsConfigDict(
        env_prefix="KEYCLOAK_SESSION_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Identity provider
    url: str
    realm: str
    client_id: str
    scope: Optional[str] = None
    well_known_url_prefix: Optional[str] = None
    redirect_uri: Optional[str] = None

    # Refresh behaviour
    refresh_seconds_before_token_expires: int = Field(default=DEFAULT_REFRESH_LEAD_SECONDS, ge=0)
    token_refresh_interval_seconds: float = Field(default=DEFAULT_REFRESH_INTERVAL_SECONDS, gt=0)

    # Isolation and logging
    configuration_name: str = DEFAULT_CONFIGURATION_NAME
    logging: LoggingMode = LoggingMode.OFF

    # Session storage; in-memory when no Redis URL is set
    redis_url: Optional[str] = None
    storage_key_prefix: str = "keycloak_session"
    storage_ttl_seconds: Optional[int] = Field(default=None, gt=0)

    def to_config(self) -> KeycloakConfig:
        """Build the immutable configuration consumed by the orchestrator."""
        return KeycloakConfig(
            url=self.url,
            realm=self.realm,
            client_id=self.client_id,
            scope=self.scope,
            well_known_url_prefix=self.well_known_url_prefix,
            redirect_uri=self.redirect_uri,
            refresh_seconds_before_token_expires=self.refresh_seconds_before_token_expires,
            token_refresh_interval_seconds=self.token_refresh_interval_seconds,
            configuration_name=self.configuration_name,
            logging=self.logging,
        )

    def to_storage(self) -> SessionStorage:
        """Build the session storage described by the settings.

        A Redis storage still has to be connected before use.
        """
        if self.redis_url:
            return RedisSessionStorage(
                redis_url=self.redis_url,
                key_prefix=self.storage_key_prefix,
                ttl_seconds=self.storage_ttl_seconds,
            )
        return MemorySessionStorage()


@lru_cache()
def get_settings() -> KeycloakSessionSettings:
    """Get cached settings instance."""
    return KeycloakSessionSettings()
