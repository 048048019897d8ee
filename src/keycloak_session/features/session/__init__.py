"""Session feature - client-side lifecycle of Keycloak/OpenID Connect sessions.

This module keeps the authentication state of one or more independently
configured realms consistent:
- Session state machine driven by identity-provider events
- Proactive token refresh on a per-configuration timer
- Recovery of the pre-login location after the redirect round-trip
- Token and return-path persistence in session storage (memory or Redis)
- Multi-configuration isolation by configuration name

Usage Example:
```python
from keycloak_session.features.session import (
    KeycloakConfig,
    MemoryLocation,
    MemorySessionStorage,
    SessionRegistry,
)

registry = SessionRegistry(MemorySessionStorage(), MemoryLocation("https://app.example.com/"))
await registry.mount(KeycloakConfig(
    url="https://sso.example.com",
    realm="acme",
    client_id="web",
    redirect_uri="https://app.example.com/authorization",
))

session = registry.get_session()
if not session.is_authenticated:
    await session.login()
```
"""

from .adapters import (
    KeycloakOpenIDClient,
    MemoryLocation,
    MemorySessionStorage,
    RedisSessionStorage,
)
from .entities import (
    HostLocation,
    IdentityProviderClient,
    IdentityProviderEvents,
    InitOptions,
    KeycloakConfig,
    KeycloakUser,
    SessionRecord,
    SessionStatus,
    SessionStorage,
    StoredTokens,
)
from .repositories import (
    IdentityClientRegistry,
    ReturnPathStore,
    TokenStore,
    make_return_path_key,
    make_token_key,
)
from .services import (
    Presentation,
    RefreshScheduler,
    SessionLifecycleOrchestrator,
    SessionRegistry,
    SessionView,
    reduce_session,
    resolve_presentation,
)

__all__ = [
    # Adapters
    "KeycloakOpenIDClient",
    "MemoryLocation",
    "MemorySessionStorage",
    "RedisSessionStorage",

    # Entities and protocols
    "HostLocation",
    "IdentityProviderClient",
    "IdentityProviderEvents",
    "InitOptions",
    "KeycloakConfig",
    "KeycloakUser",
    "SessionRecord",
    "SessionStatus",
    "SessionStorage",
    "StoredTokens",

    # Repositories
    "IdentityClientRegistry",
    "ReturnPathStore",
    "TokenStore",
    "make_return_path_key",
    "make_token_key",

    # Services
    "Presentation",
    "RefreshScheduler",
    "SessionLifecycleOrchestrator",
    "SessionRegistry",
    "SessionView",
    "reduce_session",
    "resolve_presentation",
]
