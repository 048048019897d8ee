"""Core building blocks shared by keycloak-session features."""
