"""Centralized logging configuration for keycloak-session.

Provides environment-driven console logging plus the per-configuration
verbosity selector (off / wrapper / provider / both) that decides whether the
session lifecycle and the identity-provider client chatter at DEBUG level.
"""

import logging
import logging.config
import os
from enum import Enum


WRAPPER_LOGGER = "keycloak_session"
PROVIDER_LOGGERS = ("keycloak_session.provider", "keycloak")


class LogLevel(str, Enum):
    """Supported log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogVerbosity(str, Enum):
    """Log verbosity modes."""
    QUIET = "QUIET"      # Only errors and critical
    NORMAL = "NORMAL"    # Standard logging (warnings and above)
    VERBOSE = "VERBOSE"  # Info level logging
    DEBUG = "DEBUG"      # Full debug logging


class LoggingMode(str, Enum):
    """Which side of the session lifecycle emits debug logging."""
    OFF = "off"
    WRAPPER = "wrapper"
    PROVIDER = "provider"
    BOTH = "both"

    @property
    def wrapper_enabled(self) -> bool:
        return self in (LoggingMode.WRAPPER, LoggingMode.BOTH)

    @property
    def provider_enabled(self) -> bool:
        return self in (LoggingMode.PROVIDER, LoggingMode.BOTH)


def get_log_level_from_verbosity(verbosity: str) -> str:
    """Map verbosity mode to log level."""
    verbosity_map = {
        LogVerbosity.QUIET: LogLevel.ERROR.value,
        LogVerbosity.NORMAL: LogLevel.WARNING.value,
        LogVerbosity.VERBOSE: LogLevel.INFO.value,
        LogVerbosity.DEBUG: LogLevel.DEBUG.value,
    }
    try:
        return verbosity_map[LogVerbosity(verbosity.upper())]
    except ValueError:
        return LogLevel.WARNING.value


class LoggingConfig:
    """Centralized logging configuration manager."""

    # Modules that should only log errors
    ERROR_ONLY_MODULES = [
        "httpx",
        "httpcore",
        "urllib3",
        "asyncio",
    ]

    @classmethod
    def configure(cls) -> None:
        """Configure logging based on environment variables."""
        log_verbosity = os.getenv("LOG_VERBOSITY", "NORMAL").upper()
        log_format = os.getenv("LOG_FORMAT", "simple")

        # Explicit LOG_LEVEL wins over verbosity
        log_level = os.getenv("LOG_LEVEL", "").upper()
        if log_level in LogLevel.__members__:
            effective_log_level = log_level
        else:
            effective_log_level = get_log_level_from_verbosity(log_verbosity)

        if log_format == "json":
            format_string = '{"time":"%(asctime)s","level":"%(levelname)s","module":"%(name)s","message":"%(message)s"}'
        elif log_format == "detailed":
            format_string = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
        else:  # simple
            format_string = "%(asctime)s - %(levelname)s - [keycloak-session] %(message)s"

        logging_config = {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": format_string,
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "level": "DEBUG",
                    "formatter": "default",
                    "stream": "ext://sys.stdout",
                },
            },
            "loggers": {
                WRAPPER_LOGGER: {
                    "level": effective_log_level,
                    "handlers": ["console"],
                    "propagate": False,
                },
            },
        }

        for module in cls.ERROR_ONLY_MODULES:
            logging_config["loggers"][module] = {
                "level": "ERROR",
                "propagate": True,
            }

        logging.config.dictConfig(logging_config)

        logger = logging.getLogger(__name__)
        if effective_log_level == "DEBUG":
            logger.debug(f"Logging configured: level={effective_log_level}, format={log_format}")

    @classmethod
    def apply_mode(cls, mode: LoggingMode) -> None:
        """Apply the wrapper/provider verbosity selector.

        Loggers are process-wide, so the most recently applied mode wins when
        several configurations select different modes.
        """
        mode = LoggingMode(mode)
        if mode.wrapper_enabled:
            cls.set_module_level(WRAPPER_LOGGER, LogLevel.DEBUG.value)
        else:
            cls.set_module_level(WRAPPER_LOGGER, LogLevel.WARNING.value)

        provider_level = LogLevel.DEBUG.value if mode.provider_enabled else LogLevel.WARNING.value
        for module in PROVIDER_LOGGERS:
            cls.set_module_level(module, provider_level)

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """Get a configured logger for the given module name.

        Args:
            name: Module name (usually __name__)

        Returns:
            Configured logger instance
        """
        return logging.getLogger(name)

    @classmethod
    def set_module_level(cls, module_name: str, level: str) -> None:
        """Set log level for a specific module.

        Args:
            module_name: Name of the module
            level: Log level to set
        """
        logger = logging.getLogger(module_name)
        logger.setLevel(getattr(logging, level.upper()))


def setup_logging() -> None:
    """Setup logging configuration from environment variables.

    This is the main entry point for configuring logging in the application.
    It should be called once at application startup.
    """
    LoggingConfig.configure()


def get_logger(name: str) -> logging.Logger:
    """Get a configured logger."""
    return LoggingConfig.get_logger(name)


def mask_token(token: object) -> str:
    """Return a token representation that is safe for logging."""
    if not token:
        return "<none>"
    value = str(token)
    if len(value) <= 20:
        return "***"
    return f"{value[:8]}...{value[-8:]}"
