"""Exception hierarchy for keycloak-session."""

from .base import KeycloakSessionError, create_error_response
from .session import (
    AuthenticationError,
    ClientNotInitializedError,
    ConfigurationError,
    InitializationError,
    InvalidSessionTransition,
    RefreshFailure,
    SessionStorageError,
    UnsolicitedLogout,
)

__all__ = [
    "KeycloakSessionError",
    "create_error_response",
    "AuthenticationError",
    "ClientNotInitializedError",
    "ConfigurationError",
    "InitializationError",
    "InvalidSessionTransition",
    "RefreshFailure",
    "SessionStorageError",
    "UnsolicitedLogout",
]
