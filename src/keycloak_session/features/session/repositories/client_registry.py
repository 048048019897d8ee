"""Registry of identity-provider clients keyed by configuration name."""

import logging
from typing import Callable, Dict, Optional

from ..adapters.keycloak_openid import KeycloakOpenIDClient
from ..entities.keycloak_config import KeycloakConfig
from ..entities.protocols import HostLocation, IdentityProviderClient

logger = logging.getLogger(__name__)

ClientFactory = Callable[[KeycloakConfig, HostLocation], IdentityProviderClient]


def create_keycloak_client(config: KeycloakConfig, location: HostLocation) -> IdentityProviderClient:
    """Default factory building the python-keycloak backed client."""
    return KeycloakOpenIDClient(config, location)


class IdentityClientRegistry:
    """Construct-once, reuse-thereafter store of identity-provider clients.

    One client per configuration name. Asking again for a known name returns
    the same instance, whatever configuration is passed.
    """

    def __init__(self, location: HostLocation, factory: Optional[ClientFactory] = None):
        self._location = location
        self._factory = factory or create_keycloak_client
        self._clients: Dict[str, IdentityProviderClient] = {}

    def get_or_create(self, config: KeycloakConfig) -> IdentityProviderClient:
        name = config.configuration_name
        client = self._clients.get(name)
        if client is None:
            logger.debug(f"Creating identity-provider client for {name} (realm {config.realm})")
            client = self._factory(config, self._location)
            self._clients[name] = client
        return client

    def get(self, configuration_name: str) -> Optional[IdentityProviderClient]:
        return self._clients.get(configuration_name)

    def release(self, configuration_name: str) -> None:
        client = self._clients.pop(configuration_name, None)
        if client is not None:
            client.set_event_handler(None)
            logger.debug(f"Released identity-provider client for {configuration_name}")

    def __contains__(self, configuration_name: str) -> bool:
        return configuration_name in self._clients

    def __len__(self) -> int:
        return len(self._clients)
