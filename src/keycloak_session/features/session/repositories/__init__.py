"""Storage-facing repositories of the session feature."""

from .client_registry import IdentityClientRegistry, create_keycloak_client
from .return_path_store import DEFAULT_RETURN_PATH, ReturnPathStore, make_return_path_key
from .token_store import TokenStore, make_token_key

__all__ = [
    "IdentityClientRegistry",
    "create_keycloak_client",
    "DEFAULT_RETURN_PATH",
    "ReturnPathStore",
    "make_return_path_key",
    "TokenStore",
    "make_token_key",
]
