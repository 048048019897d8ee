"""Protocol interfaces for the session feature."""

from abc import abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional, Protocol, runtime_checkable

from .stored_tokens import StoredTokens


@dataclass(frozen=True)
class InitOptions:
    """Options handed to the identity-provider client's ``init``."""

    on_load: str = "check-sso"
    scope: Optional[str] = None
    enable_logging: bool = False
    redirect_uri: Optional[str] = None
    tokens: Optional[StoredTokens] = None


@runtime_checkable
class IdentityProviderEvents(Protocol):
    """Event capability the identity-provider client reports to.

    Implemented once by the lifecycle orchestrator and registered once per
    client instance. The client awaits each handler.
    """

    @abstractmethod
    async def on_ready(self, authenticated: bool) -> None:
        """Initialization finished."""
        ...

    @abstractmethod
    async def on_auth_success(self) -> None:
        """Interactive or silent authentication produced tokens."""
        ...

    @abstractmethod
    async def on_auth_error(self, error: Optional[BaseException]) -> None:
        """The identity provider reported an authentication error."""
        ...

    @abstractmethod
    async def on_auth_refresh_success(self) -> None:
        """Tokens were renewed."""
        ...

    @abstractmethod
    async def on_auth_logout(self) -> None:
        """The session ended without the application asking for it."""
        ...


@runtime_checkable
class IdentityProviderClient(Protocol):
    """Protocol for the delegated identity-provider client."""

    @property
    def did_initialize(self) -> bool:
        ...

    @property
    def authenticated(self) -> bool:
        ...

    @property
    def token(self) -> Optional[str]:
        ...

    @property
    def refresh_token(self) -> Optional[str]:
        ...

    @property
    def id_token(self) -> Optional[str]:
        ...

    @property
    def token_expires_at(self) -> Optional[datetime]:
        ...

    @abstractmethod
    def set_event_handler(self, handler: Optional[IdentityProviderEvents]) -> None:
        """Register (or detach with ``None``) the event capability."""
        ...

    @abstractmethod
    async def init(self, options: InitOptions) -> bool:
        """Initialize the client; resolves whether a session is authenticated."""
        ...

    @abstractmethod
    async def login(self, redirect_uri: Optional[str] = None) -> None:
        """Dispatch the interactive login redirect."""
        ...

    @abstractmethod
    async def logout(self, redirect_uri: str) -> None:
        """Dispatch the logout redirect."""
        ...

    @abstractmethod
    async def update_token(self, min_validity: int) -> bool:
        """Renew tokens if they expire within ``min_validity`` seconds."""
        ...

    @abstractmethod
    async def load_user_info(self) -> Dict[str, Any]:
        """Fetch the profile claims of the authenticated user."""
        ...


@runtime_checkable
class SessionStorage(Protocol):
    """Narrow key-value capability scoped to one browser-tab-like session."""

    @abstractmethod
    async def get_item(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    async def set_item(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    async def remove_item(self, key: str) -> None:
        ...


@runtime_checkable
class HostLocation(Protocol):
    """Navigation and history capability of the host environment."""

    @property
    def href(self) -> str:
        ...

    @property
    def origin(self) -> str:
        ...

    @property
    def path_with_query(self) -> str:
        ...

    @abstractmethod
    def assign(self, url: str) -> None:
        """Navigate away (full page navigation)."""
        ...

    @abstractmethod
    def replace_state(self, url: str, state: Optional[Dict[str, Any]] = None) -> None:
        """Replace the current history entry without navigating."""
        ...

    @abstractmethod
    def notify_navigation(self) -> None:
        """Tell routers listening for history changes that the location moved."""
        ...
