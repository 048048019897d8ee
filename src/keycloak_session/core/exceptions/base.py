"""Base exceptions for keycloak-session.

This module defines the base exception hierarchy for the keycloak-session
library. All exceptions inherit from KeycloakSessionError and carry an error
code and structured details for logging and presentation layers.
"""

from typing import Any, Dict, Optional


class KeycloakSessionError(Exception):
    """Base exception for all keycloak-session errors.

    All exceptions in the keycloak-session library inherit from this base class
    and include structured error information for better debugging.
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        *args,
        **kwargs
    ):
        super().__init__(message, *args, **kwargs)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}


def create_error_response(exception: KeycloakSessionError) -> Dict[str, Any]:
    """Create standardized error payload from exception.

    Args:
        exception: The keycloak-session exception

    Returns:
        Error dictionary suitable for presentation components
    """
    return {
        "error": {
            "code": exception.error_code,
            "message": exception.message,
            "details": exception.details,
            "type": exception.__class__.__name__,
        }
    }
