"""Configuration for keycloak-session: logging and environment settings."""

from .logging_config import (
    LoggingConfig,
    LoggingMode,
    LogLevel,
    LogVerbosity,
    get_logger,
    mask_token,
    setup_logging,
)
from .settings import KeycloakSessionSettings, get_settings

__all__ = [
    "LoggingConfig",
    "LoggingMode",
    "LogLevel",
    "LogVerbosity",
    "get_logger",
    "mask_token",
    "setup_logging",
    "KeycloakSessionSettings",
    "get_settings",
]
