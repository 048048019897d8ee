"""Lifecycle orchestrator: drives one configuration's session.

Translates identity-provider events into session record transitions and
applies the effects of each transition (refresh timer, return-path recovery,
listener notification).
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional

from ....config.logging_config import LoggingConfig, mask_token
from ....core.exceptions import (
    AuthenticationError,
    ClientNotInitializedError,
    ConfigurationError,
    InitializationError,
    InvalidSessionTransition,
    KeycloakSessionError,
    RefreshFailure,
    SessionStorageError,
    UnsolicitedLogout,
)
from ..entities.keycloak_config import KeycloakConfig
from ..entities.keycloak_user import KeycloakUser
from ..entities.protocols import (
    HostLocation,
    IdentityProviderClient,
    InitOptions,
    SessionStorage,
)
from ..entities.session_record import SessionRecord, SessionStatus
from ..repositories.client_registry import IdentityClientRegistry
from ..repositories.return_path_store import DEFAULT_RETURN_PATH, ReturnPathStore
from ..repositories.token_store import TokenStore
from .refresh_scheduler import RefreshScheduler
from .session_reducer import (
    SessionAction,
    SetError,
    SetLoading,
    SetSessionLost,
    SetToken,
    SetUserInfo,
    reduce_session,
)

logger = logging.getLogger(__name__)

SessionListener = Callable[[SessionRecord], None]


@dataclass(frozen=True)
class SessionView:
    """Consumer-facing snapshot of a session plus its login/logout operations."""

    configuration_name: str
    status: SessionStatus
    is_loading: bool
    is_authenticated: bool
    access_token: Optional[str]
    id_token: Optional[str]
    user_info: Optional[KeycloakUser]
    last_error: Optional[BaseException]
    session_lost: bool
    login: Callable[..., Awaitable[None]]
    logout: Callable[[str], Awaitable[None]]


class SessionLifecycleOrchestrator:
    """Owns the session record of one configuration name.

    Registered as the event handler of its identity-provider client. Results
    that arrive after the session moved on (left AUTHENTICATED, logout,
    retry, close) are recognised through the session epoch and dropped.
    """

    def __init__(
        self,
        config: KeycloakConfig,
        *,
        storage: SessionStorage,
        location: HostLocation,
        client_registry: IdentityClientRegistry,
        scheduler: RefreshScheduler,
    ):
        self.config = config
        self._location = location
        self._clients = client_registry
        self._scheduler = scheduler
        self._token_store = TokenStore(storage)
        self._return_paths = ReturnPathStore(storage)

        self._record = SessionRecord.initial(config.configuration_name)
        self._listeners: List[SessionListener] = []
        self._client: Optional[IdentityProviderClient] = None
        self._dispatch_lock = asyncio.Lock()
        self._profile_task: Optional[asyncio.Task] = None
        self._profile_epoch = 0
        self._recovered_href: Optional[str] = None
        self._epoch = 0
        self._closed = False

    @property
    def configuration_name(self) -> str:
        return self.config.configuration_name

    @property
    def record(self) -> SessionRecord:
        return self._record

    @property
    def client(self) -> Optional[IdentityProviderClient]:
        return self._client

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def is_closed(self) -> bool:
        return self._closed

    def _is_stale(self, epoch: int) -> bool:
        return self._closed or epoch != self._epoch

    # Lifecycle

    async def start(self, force: bool = False) -> SessionRecord:
        """Initialize the identity-provider client for this configuration.

        Initialization failures end in AUTH_ERROR rather than being raised.

        Args:
            force: Re-run ``init`` even if the client already initialized

        Returns:
            The session record once initialization settled
        """
        if self._closed:
            raise ConfigurationError(
                f"Session {self.configuration_name} is closed",
                error_code="session_closed",
                details={"configuration_name": self.configuration_name},
            )

        LoggingConfig.apply_mode(self.config.logging)

        client = self._clients.get_or_create(self.config)
        if client is not self._client:
            client.set_event_handler(self)
            self._client = client

        if client.did_initialize and not force:
            logger.debug(f"Client for {self.configuration_name} already initialized")
            return self._record

        tokens = await self._token_store.load(self.configuration_name, self.config.realm)
        options = InitOptions(
            on_load="check-sso",
            scope=self.config.scope,
            enable_logging=self.config.logging.provider_enabled,
            redirect_uri=self.config.redirect_uri,
            tokens=tokens,
        )

        epoch = self._epoch
        logger.debug(
            f"Initializing {self.configuration_name} (realm {self.config.realm}, "
            f"stored tokens: {tokens is not None})"
        )
        try:
            authenticated = await client.init(options)
        except Exception as e:
            if self._is_stale(epoch):
                logger.debug(f"Ignoring initialization failure of a superseded session {self.configuration_name}")
                return self._record
            logger.error(f"Failed to initialize {self.configuration_name}: {e}")
            if isinstance(e, InitializationError):
                error = e
            else:
                error = InitializationError(
                    "Identity provider client failed to initialize",
                    details={"configuration_name": self.configuration_name, "error": str(e)},
                )
                error.__cause__ = e
            await self._dispatch(SetError(error))
            return self._record

        # init resolved without a session and without signalling readiness
        if not authenticated and not self._is_stale(epoch) and self._record.is_loading:
            await self._dispatch(SetLoading(False))
        return self._record

    async def retry(self) -> SessionRecord:
        """Leave AUTH_ERROR or SESSION_LOST and initialize again."""
        if self._record.has_error:
            await self._dispatch(SetError(None))
        elif self._record.session_lost:
            await self._dispatch(SetSessionLost(False))
        else:
            logger.debug(f"Nothing to retry for {self.configuration_name} in status {self._record.status.value}")
            return self._record

        self._epoch += 1
        await self._dispatch(SetLoading(True))
        return await self.start(force=True)

    async def close(self) -> None:
        """Tear the session down; later events and results are ignored."""
        if self._closed:
            return
        self._closed = True
        self._epoch += 1
        self._scheduler.stop(self.configuration_name)

        if self._profile_task is not None and not self._profile_task.done():
            self._profile_task.cancel()
        self._profile_task = None

        if self._client is not None:
            self._clients.release(self.configuration_name)
            self._client = None
        self._listeners.clear()
        logger.debug(f"Closed session {self.configuration_name}")

    # Operations

    def _require_client(self, operation: str) -> IdentityProviderClient:
        if self._client is None:
            raise ClientNotInitializedError(self.configuration_name, operation)
        return self._client

    async def login(self, redirect_uri: Optional[str] = None) -> None:
        """Record the current location and redirect to the identity provider.

        Raises:
            ClientNotInitializedError: If the session was not started
        """
        client = self._require_client("login")
        await self._return_paths.save(self.configuration_name, self._location.path_with_query)
        await self._dispatch(SetLoading(True))
        await client.login(redirect_uri or self.config.redirect_uri)

    async def logout(self, redirect_uri: str) -> None:
        """Forget stored tokens and redirect to the identity provider's logout.

        Raises:
            ClientNotInitializedError: If the session was not started
        """
        client = self._require_client("logout")
        await self._token_store.clear(self.configuration_name, self.config.realm)
        self._scheduler.stop(self.configuration_name)
        self._epoch += 1
        await self._dispatch(SetLoading(True))
        await client.logout(redirect_uri)

    async def require_authentication(self) -> bool:
        """Gate protected content, starting a login when there is no session.

        Returns:
            True if protected content may be rendered
        """
        record = self._record
        if record.is_loading:
            return False
        if record.is_authenticated:
            return True
        if record.status.is_terminal:
            return False
        await self.login()
        return False

    async def recover_return_path(self) -> bool:
        """Move the host back to where it was before the login redirect.

        Returns:
            True if the host was at the redirect URI and recovery ran
        """
        redirect_uri = self.config.redirect_uri
        href = self._location.href
        if not redirect_uri or not href.startswith(redirect_uri) or href == self._recovered_href:
            return False

        return_path = await self._return_paths.get(self.configuration_name) or DEFAULT_RETURN_PATH
        if not href.endswith(return_path):
            target = f"{self._location.origin}{return_path}"
            logger.debug(f"Returning {self.configuration_name} to {return_path}")
            self._location.replace_state(target, {"keycloak_redirected": True})
            self._location.notify_navigation()
            self._recovered_href = target
        else:
            self._recovered_href = href
        await self._return_paths.delete(self.configuration_name)
        return True

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener called with every new record.

        Returns:
            Callable removing the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def view(self) -> SessionView:
        record = self._record
        return SessionView(
            configuration_name=record.configuration_name,
            status=record.status,
            is_loading=record.is_loading,
            is_authenticated=record.is_authenticated,
            access_token=record.access_token,
            id_token=record.id_token,
            user_info=record.user_info,
            last_error=record.last_error,
            session_lost=record.session_lost,
            login=self.login,
            logout=self.logout,
        )

    async def wait_for_user_info(self) -> Optional[KeycloakUser]:
        """Wait for a pending profile fetch and return the current profile."""
        task = self._profile_task
        if task is not None and not task.done():
            await asyncio.wait({task})
        return self._record.user_info

    # Identity-provider events

    async def on_ready(self, authenticated: bool) -> None:
        if self._closed:
            return
        if authenticated:
            logger.debug(f"Client for {self.configuration_name} ready with a session")
            return
        await self._dispatch(SetLoading(False))

    async def on_auth_success(self) -> None:
        if self._closed or self._client is None:
            return
        logger.debug(f"Authenticated {self.configuration_name}")
        await self._store_tokens(self._client)
        await self._dispatch(self._token_action(self._client))
        if self._record.is_authenticated:
            self._start_profile_fetch()

    async def on_auth_error(self, error: Optional[BaseException]) -> None:
        if self._closed:
            return
        if not isinstance(error, KeycloakSessionError):
            wrapped = AuthenticationError(
                "Identity provider reported an authentication error",
                details={"configuration_name": self.configuration_name, "error": str(error)},
            )
            wrapped.__cause__ = error
            error = wrapped
        logger.warning(f"Authentication error for {self.configuration_name}: {error}")
        await self._dispatch(SetError(error))

    async def on_auth_refresh_success(self) -> None:
        if self._closed or self._client is None:
            return
        if not self._record.is_authenticated:
            logger.debug(f"Ignoring token refresh of {self.configuration_name} outside an authenticated session")
            return
        logger.debug(f"Token refreshed for {self.configuration_name}: {mask_token(self._client.token)}")
        await self._store_tokens(self._client)
        await self._dispatch(self._token_action(self._client))

    async def on_auth_logout(self) -> None:
        if self._closed:
            return
        logger.info(f"Session lost for {self.configuration_name}")
        await self._dispatch(SetSessionLost(True))

    # Refresh

    async def _refresh_tick(self) -> None:
        client = self._client
        if client is None or self._closed or not self._record.is_authenticated:
            return

        epoch = self._epoch
        try:
            refreshed = await client.update_token(self.config.refresh_seconds_before_token_expires)
        except UnsolicitedLogout as e:
            # The client already reported the logout
            logger.debug(f"Refresh of {self.configuration_name} ended the session: {e}")
            return
        except Exception as e:
            if self._is_stale(epoch):
                logger.debug(f"Ignoring refresh failure of a superseded session {self.configuration_name}")
                return
            logger.error(f"Token refresh failed for {self.configuration_name}: {e}")
            if isinstance(e, RefreshFailure):
                error = e
            else:
                error = RefreshFailure(
                    "Token refresh failed",
                    details={"configuration_name": self.configuration_name, "error": str(e)},
                )
                error.__cause__ = e
            await self._dispatch(SetError(error))
            return

        if not refreshed and not self._is_stale(epoch):
            logger.debug(
                f"Token of {self.configuration_name} still valid, expires at {client.token_expires_at}"
            )

    # Transitions

    @staticmethod
    def _token_action(client: IdentityProviderClient) -> SetToken:
        return SetToken(
            access_token=client.token,
            refresh_token=client.refresh_token,
            id_token=client.id_token,
            is_authenticated=client.authenticated,
        )

    async def _store_tokens(self, client: IdentityProviderClient) -> None:
        if not client.token:
            return
        try:
            await self._token_store.save(
                self.configuration_name,
                self.config.realm,
                access_token=client.token,
                refresh_token=client.refresh_token,
                id_token=client.id_token,
            )
        except SessionStorageError as e:
            logger.warning(f"Could not persist tokens for {self.configuration_name}: {e}")

    def _start_profile_fetch(self) -> None:
        task = self._profile_task
        if task is not None and not task.done():
            if self._profile_epoch == self._epoch:
                return
            # Left over from an earlier session
            task.cancel()
        self._profile_epoch = self._epoch
        self._profile_task = asyncio.create_task(self._load_user_info(self._epoch))

    async def _load_user_info(self, epoch: int) -> None:
        client = self._client
        if client is None:
            return
        try:
            claims = await client.load_user_info()
        except Exception as e:
            logger.warning(f"Could not load user info for {self.configuration_name}: {e}")
            return
        if self._is_stale(epoch):
            return
        await self._dispatch(SetUserInfo(KeycloakUser.from_claims(claims)))

    async def _dispatch(self, action: SessionAction) -> bool:
        """Apply one action and its effects.

        Returns:
            True if the record changed
        """
        if self._closed:
            return False

        async with self._dispatch_lock:
            previous = self._record
            try:
                record = reduce_session(previous, action)
            except InvalidSessionTransition as e:
                logger.debug(f"Ignoring stale {e.action} for {self.configuration_name} in status {e.status}")
                return False
            if record is previous:
                return False

            self._record = record
            logger.debug(
                f"{self.configuration_name}: {action.type} "
                f"{previous.status.value} -> {record.status.value} (loading={record.is_loading})"
            )
            await self._apply_effects(previous, record)

        self._notify(record)
        return True

    async def _apply_effects(self, previous: SessionRecord, record: SessionRecord) -> None:
        if previous.is_authenticated and not record.is_authenticated:
            self._epoch += 1
            self._scheduler.stop(self.configuration_name)

        if record.is_authenticated and not previous.is_authenticated:
            self._recovered_href = None
            self._scheduler.start(
                self.configuration_name,
                self._refresh_tick,
                self.config.token_refresh_interval_seconds,
            )
            try:
                await self.recover_return_path()
            except SessionStorageError as e:
                logger.warning(f"Return path recovery failed for {self.configuration_name}: {e}")

    def _notify(self, record: SessionRecord) -> None:
        for listener in list(self._listeners):
            try:
                listener(record)
            except Exception as e:
                logger.error(f"Session listener failed for {self.configuration_name}: {e}")
