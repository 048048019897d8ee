"""Session lifecycle exceptions for keycloak-session."""

from typing import Any, Dict, Optional

from .base import KeycloakSessionError


class AuthenticationError(KeycloakSessionError):
    """Raised when the identity provider reports an authentication error."""
    pass


class InitializationError(AuthenticationError):
    """Raised when the identity-provider client fails to initialize.

    Covers discovery-document and network failures during ``init``.
    """
    pass


class RefreshFailure(AuthenticationError):
    """Raised when token renewal is rejected or cannot be performed."""
    pass


class UnsolicitedLogout(RefreshFailure):
    """Raised when the identity provider ended the session on its own.

    The refresh grant was rejected (expired refresh token, revoked session) and
    the client already signalled the logout to its event handler.
    """
    pass


class ConfigurationError(KeycloakSessionError):
    """Raised when an operation targets an unknown or invalid configuration."""

    @classmethod
    def missing(cls, configuration_name: str) -> "ConfigurationError":
        """Create exception for a configuration name that was never mounted."""
        return cls(
            f"Missing configuration: '{configuration_name}' was never initialized",
            error_code="missing_configuration",
            details={"configuration_name": configuration_name},
        )


class ClientNotInitializedError(ConfigurationError):
    """Raised when login/logout is requested before a client was constructed."""

    def __init__(self, configuration_name: str, operation: str):
        super().__init__(
            f"Cannot {operation}: identity-provider client for '{configuration_name}' is not constructed",
            error_code="client_not_initialized",
            details={"configuration_name": configuration_name, "operation": operation},
        )
        self.configuration_name = configuration_name
        self.operation = operation


class InvalidSessionTransition(KeycloakSessionError):
    """Raised by the session reducer for an action not allowed from the current status."""

    def __init__(
        self,
        action: str,
        status: str,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            f"Action {action} is not allowed while session is {status}",
            error_code="invalid_session_transition",
            details={"action": action, "status": status, **(context or {})},
        )
        self.action = action
        self.status = status


class SessionStorageError(KeycloakSessionError):
    """Raised when the session storage backend fails."""
    pass
