"""Return-path recorder: the pre-login location per configuration name."""

import logging
from typing import Optional

from ..entities.protocols import SessionStorage

logger = logging.getLogger(__name__)

DEFAULT_RETURN_PATH = "/"


def make_return_path_key(configuration_name: Optional[str] = None, suffix: str = "return_url") -> str:
    """Create storage key for the return path of a configuration."""
    return "_".join(part for part in ["keycloak", configuration_name or "default", suffix] if part)


class ReturnPathStore:
    """Records where the user was before being sent to the identity provider."""

    def __init__(self, storage: SessionStorage):
        if storage is None:
            raise ValueError("Session storage is required")
        self.storage = storage

    async def save(self, configuration_name: str, path: str) -> None:
        await self.storage.set_item(make_return_path_key(configuration_name), path)
        logger.debug(f"Recorded return path {path} for {configuration_name}")

    async def get(self, configuration_name: str) -> Optional[str]:
        return await self.storage.get_item(make_return_path_key(configuration_name))

    async def delete(self, configuration_name: str) -> None:
        await self.storage.remove_item(make_return_path_key(configuration_name))
