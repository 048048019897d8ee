"""In-memory host location with history semantics."""

import logging
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)

NavigationListener = Callable[[str], None]


class MemoryLocation:
    """Host location for non-browser hosts and tests.

    ``assign`` records a full navigation, ``replace_state`` rewrites the
    current entry, ``notify_navigation`` fans out to router listeners.
    """

    def __init__(self, href: str):
        self._href = href
        self._state: Optional[Dict[str, Any]] = None
        self._listeners: List[NavigationListener] = []
        self.navigations: List[str] = []

    @property
    def href(self) -> str:
        return self._href

    @property
    def origin(self) -> str:
        parts = urlsplit(self._href)
        return f"{parts.scheme}://{parts.netloc}"

    @property
    def path_with_query(self) -> str:
        parts = urlsplit(self._href)
        path = parts.path or "/"
        return f"{path}?{parts.query}" if parts.query else path

    @property
    def state(self) -> Optional[Dict[str, Any]]:
        return self._state

    def assign(self, url: str) -> None:
        logger.debug(f"Navigating to {url}")
        self.navigations.append(url)
        self._href = url
        self._state = None

    def replace_state(self, url: str, state: Optional[Dict[str, Any]] = None) -> None:
        self._href = url
        self._state = state

    def notify_navigation(self) -> None:
        for listener in list(self._listeners):
            listener(self._href)

    def add_listener(self, listener: NavigationListener) -> Callable[[], None]:
        """Subscribe a router to navigation changes; returns the unsubscribe callable."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove
