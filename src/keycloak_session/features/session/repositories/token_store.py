"""Token store: token snapshots keyed by configuration name and realm."""

import logging
from typing import Optional

from pydantic import ValidationError

from ..entities.protocols import SessionStorage
from ..entities.stored_tokens import StoredTokens

logger = logging.getLogger(__name__)


def make_token_key(configuration_name: str, realm: str) -> str:
    """Create storage key for a token snapshot."""
    return ".".join(["keycloak", realm, configuration_name])


class TokenStore:
    """Persists refresh-relevant tokens across the login redirect.

    Handles ONLY snapshot persistence; deciding when to write is the
    orchestrator's job.
    """

    def __init__(self, storage: SessionStorage):
        if storage is None:
            raise ValueError("Session storage is required")
        self.storage = storage

    async def save(
        self,
        configuration_name: str,
        realm: str,
        *,
        access_token: Optional[str] = None,
        refresh_token: Optional[str] = None,
        id_token: Optional[str] = None,
    ) -> StoredTokens:
        tokens = StoredTokens(
            access_token=access_token,
            refresh_token=refresh_token,
            id_token=id_token,
        )
        await self.storage.set_item(make_token_key(configuration_name, realm), tokens.to_json())
        logger.debug(f"Stored tokens for {configuration_name}/{realm}")
        return tokens

    async def load(self, configuration_name: str, realm: str) -> Optional[StoredTokens]:
        """Load the snapshot, or ``None`` when absent or unreadable."""
        payload = await self.storage.get_item(make_token_key(configuration_name, realm))
        if not payload:
            return None
        try:
            return StoredTokens.from_json(payload)
        except ValidationError as e:
            logger.warning(f"Discarding unreadable token snapshot for {configuration_name}/{realm}: {e}")
            return None

    async def clear(self, configuration_name: str, realm: str) -> None:
        await self.storage.remove_item(make_token_key(configuration_name, realm))
        logger.debug(f"Cleared stored tokens for {configuration_name}/{realm}")
