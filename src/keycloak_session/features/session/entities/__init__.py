"""Session feature entities and protocols."""

from .keycloak_config import KeycloakConfig
from .keycloak_user import KeycloakUser
from .protocols import (
    HostLocation,
    IdentityProviderClient,
    IdentityProviderEvents,
    InitOptions,
    SessionStorage,
)
from .session_record import SessionRecord, SessionStatus
from .stored_tokens import StoredTokens

__all__ = [
    "KeycloakConfig",
    "KeycloakUser",
    "HostLocation",
    "IdentityProviderClient",
    "IdentityProviderEvents",
    "InitOptions",
    "SessionStorage",
    "SessionRecord",
    "SessionStatus",
    "StoredTokens",
]
