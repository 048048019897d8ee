"""Version information for keycloak-session."""

__version__ = "0.1.0"
