"""Features of keycloak-session."""
