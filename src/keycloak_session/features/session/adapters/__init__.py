"""Adapters for the identity provider, session storage and host location."""

from .keycloak_openid import KeycloakOpenIDClient
from .memory_location import MemoryLocation
from .memory_storage import MemorySessionStorage
from .redis_storage import RedisSessionStorage

__all__ = [
    "KeycloakOpenIDClient",
    "MemoryLocation",
    "MemorySessionStorage",
    "RedisSessionStorage",
]
