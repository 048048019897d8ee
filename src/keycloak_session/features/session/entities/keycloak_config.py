"""Keycloak session configuration entity."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ....config.logging_config import LoggingMode

DEFAULT_CONFIGURATION_NAME = "default"
DEFAULT_REFRESH_LEAD_SECONDS = 120
DEFAULT_REFRESH_INTERVAL_SECONDS = 10


class KeycloakConfig(BaseModel):
    """Immutable configuration of one identity-provider session.

    ``configuration_name`` is the isolation key: two configurations with
    different names never share session state, timers or stored entries.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    # Keycloak connection details (required)
    url: str
    realm: str
    client_id: str

    scope: Optional[str] = None
    # {domain}/realms/{realm} without the ".well-known/openid-configuration" suffix
    well_known_url_prefix: Optional[str] = None
    # Where the identity provider sends the browser back after login
    redirect_uri: Optional[str] = None

    # Seconds before expiry at which a refresh is attempted
    refresh_seconds_before_token_expires: int = Field(default=DEFAULT_REFRESH_LEAD_SECONDS, ge=0)
    # Seconds between two refresh checks, independent of the lead time
    token_refresh_interval_seconds: float = Field(default=DEFAULT_REFRESH_INTERVAL_SECONDS, gt=0)

    configuration_name: str = DEFAULT_CONFIGURATION_NAME
    logging: LoggingMode = LoggingMode.OFF

    @field_validator("url")
    @classmethod
    def normalize_url(cls, value: str) -> str:
        """Normalize Keycloak server URL for v18+ compatibility."""
        value = value.strip().rstrip("/")
        if not value.startswith(("http://", "https://")):
            raise ValueError("Invalid Keycloak server URL format")
        if value.endswith("/auth"):
            value = value[:-5]
        return value

    @field_validator("realm", "client_id", "configuration_name")
    @classmethod
    def require_non_empty(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("value cannot be empty")
        return value

    @field_validator("well_known_url_prefix")
    @classmethod
    def strip_well_known_prefix(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.rstrip("/")

    @property
    def realm_url(self) -> str:
        """Get the base URL of this realm."""
        return f"{self.url}/realms/{self.realm}"

    @property
    def well_known_url(self) -> str:
        """Get the discovery document URL, honouring the prefix override."""
        prefix = self.well_known_url_prefix or self.realm_url
        return f"{prefix}/.well-known/openid-configuration"
