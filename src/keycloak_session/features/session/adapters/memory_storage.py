"""In-memory session storage."""

import logging
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class MemorySessionStorage:
    """Process-local implementation of the session storage capability.

    Survives orchestrator re-creation within one process, which is what a
    redirect round-trip looks like to an embedded host.
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._items: Dict[str, str] = dict(initial or {})

    async def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    async def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self):
        return list(self._items.keys())

    def clear(self) -> None:
        logger.debug(f"Clearing {len(self._items)} session storage entries")
        self._items.clear()

    def __contains__(self, key: str) -> bool:
        return key in self._items

    def __len__(self) -> int:
        return len(self._items)
