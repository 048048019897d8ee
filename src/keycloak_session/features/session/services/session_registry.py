"""Session registry: isolated sessions for several configuration names."""

import logging
from typing import Any, Dict, List, Optional

from ....core.exceptions import ConfigurationError
from ..entities.keycloak_config import DEFAULT_CONFIGURATION_NAME, KeycloakConfig
from ..entities.protocols import HostLocation, SessionStorage
from ..repositories.client_registry import ClientFactory, IdentityClientRegistry
from .lifecycle_orchestrator import SessionLifecycleOrchestrator, SessionView
from .refresh_scheduler import RefreshScheduler

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Mounts one lifecycle orchestrator per configuration name.

    All sessions share the storage, the host location, one refresh scheduler
    and one identity-client registry; nothing else crosses configuration
    names. Accessors never synthesize a session for an unknown name.
    """

    def __init__(
        self,
        storage: SessionStorage,
        location: HostLocation,
        client_factory: Optional[ClientFactory] = None,
    ):
        """Initialize session registry.

        Args:
            storage: Session storage shared by every configuration
            location: Host location shared by every configuration
            client_factory: Builds identity-provider clients, defaults to python-keycloak
        """
        self.storage = storage
        self.location = location
        self.scheduler = RefreshScheduler()
        self.clients = IdentityClientRegistry(location, client_factory)
        self._sessions: Dict[str, SessionLifecycleOrchestrator] = {}

    async def mount(self, config: KeycloakConfig) -> SessionLifecycleOrchestrator:
        """Start a session for a configuration, replacing one with the same name."""
        name = config.configuration_name
        existing = self._sessions.pop(name, None)
        if existing is not None:
            logger.info(f"Replacing session {name}")
            await existing.close()

        orchestrator = SessionLifecycleOrchestrator(
            config,
            storage=self.storage,
            location=self.location,
            client_registry=self.clients,
            scheduler=self.scheduler,
        )
        self._sessions[name] = orchestrator
        await orchestrator.start()
        return orchestrator

    async def unmount(self, configuration_name: str) -> bool:
        orchestrator = self._sessions.pop(configuration_name, None)
        if orchestrator is None:
            return False
        await orchestrator.close()
        return True

    async def close(self) -> None:
        for name in list(self._sessions):
            await self.unmount(name)
        self.scheduler.stop_all()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def get(self, configuration_name: str = DEFAULT_CONFIGURATION_NAME) -> SessionLifecycleOrchestrator:
        """Get the orchestrator of a configuration.

        Raises:
            ConfigurationError: If no session is mounted under the name
        """
        orchestrator = self._sessions.get(configuration_name)
        if orchestrator is None:
            raise ConfigurationError.missing(configuration_name)
        return orchestrator

    def get_session(self, configuration_name: str = DEFAULT_CONFIGURATION_NAME) -> SessionView:
        return self.get(configuration_name).view()

    def get_token(self, configuration_name: str = DEFAULT_CONFIGURATION_NAME) -> Dict[str, Optional[str]]:
        record = self.get(configuration_name).record
        return {"access_token": record.access_token, "id_token": record.id_token}

    def get_user(self, configuration_name: str = DEFAULT_CONFIGURATION_NAME) -> Dict[str, Any]:
        record = self.get(configuration_name).record
        return {"user": record.user_info, "loading": record.is_loading}

    @property
    def configuration_names(self) -> List[str]:
        return list(self._sessions)

    def __contains__(self, configuration_name: str) -> bool:
        return configuration_name in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
