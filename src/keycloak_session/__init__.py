"""keycloak-session - client-side Keycloak/OpenID Connect session lifecycle.

Tracks authentication status across independently configured realms,
refreshes tokens ahead of expiry, and brings the user back to where they
were after the login redirect.
"""

# Initialize logging configuration on import
from .config.logging_config import setup_logging
setup_logging()

from .__version__ import __version__

from .config import (
    KeycloakSessionSettings,
    LoggingConfig,
    LoggingMode,
    get_settings,
)

from .core.exceptions import (
    # Base Exception
    KeycloakSessionError,

    # Session Exceptions
    AuthenticationError,
    InitializationError,
    RefreshFailure,
    UnsolicitedLogout,
    ConfigurationError,
    ClientNotInitializedError,
    InvalidSessionTransition,
    SessionStorageError,
)

from .features.session import (
    KeycloakConfig,
    KeycloakUser,
    SessionRecord,
    SessionStatus,
    StoredTokens,
    KeycloakOpenIDClient,
    MemoryLocation,
    MemorySessionStorage,
    RedisSessionStorage,
    Presentation,
    SessionLifecycleOrchestrator,
    SessionRegistry,
    SessionView,
    resolve_presentation,
)

__all__ = [
    "__version__",

    # Configuration
    "KeycloakSessionSettings",
    "LoggingConfig",
    "LoggingMode",
    "get_settings",

    # Exceptions
    "KeycloakSessionError",
    "AuthenticationError",
    "InitializationError",
    "RefreshFailure",
    "UnsolicitedLogout",
    "ConfigurationError",
    "ClientNotInitializedError",
    "InvalidSessionTransition",
    "SessionStorageError",

    # Session
    "KeycloakConfig",
    "KeycloakUser",
    "SessionRecord",
    "SessionStatus",
    "StoredTokens",
    "KeycloakOpenIDClient",
    "MemoryLocation",
    "MemorySessionStorage",
    "RedisSessionStorage",
    "Presentation",
    "SessionLifecycleOrchestrator",
    "SessionRegistry",
    "SessionView",
    "resolve_presentation",
]
