"""Pytest configuration and fixtures for keycloak-session tests."""

import asyncio
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pytest
import pytest_asyncio
from jose import jwt

from keycloak_session.core.exceptions import UnsolicitedLogout
from keycloak_session.features.session.adapters.memory_location import MemoryLocation
from keycloak_session.features.session.adapters.memory_storage import MemorySessionStorage
from keycloak_session.features.session.entities.keycloak_config import KeycloakConfig
from keycloak_session.features.session.entities.protocols import InitOptions
from keycloak_session.features.session.repositories.client_registry import IdentityClientRegistry
from keycloak_session.features.session.services.lifecycle_orchestrator import (
    SessionLifecycleOrchestrator,
)
from keycloak_session.features.session.services.refresh_scheduler import RefreshScheduler

APP_ORIGIN = "https://app.example.com"
REDIRECT_URI = f"{APP_ORIGIN}/authorization"
SIGNING_KEY = "test-signing-key"

# Outcomes understood by FakeIdentityClient.update_token
REFRESHED = True
STILL_VALID = False
LOGGED_OUT = "logout"


def make_jwt(expires_in: int = 300, **claims: Any) -> str:
    """Create an HS256 token expiring ``expires_in`` seconds from now."""
    payload = {"sub": "user-1", "exp": int(time.time()) + expires_in, **claims}
    return jwt.encode(payload, SIGNING_KEY, algorithm="HS256")


async def wait_until(predicate, timeout: float = 1.0) -> None:
    """Poll ``predicate`` on the running loop until it holds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.005)


class FakeIdentityClient:
    """Identity-provider client double that reports events like keycloak-js.

    ``init`` authenticates when ``authenticate_on_init`` is set or when stored
    tokens are offered and ``accept_stored_tokens`` is set. ``update_outcomes``
    scripts successive ``update_token`` calls.
    """

    def __init__(self, config: KeycloakConfig, location: MemoryLocation):
        self.config = config
        self.location = location
        self.handler = None

        self.authenticate_on_init = False
        self.accept_stored_tokens = True
        self.init_error: Optional[BaseException] = None
        self.update_outcomes: List[Any] = []
        self.user_claims: Dict[str, Any] = {"sub": "user-1", "preferred_username": "jdoe"}
        self.user_info_error: Optional[BaseException] = None
        # Awaited before answering, to hold a call in flight
        self.update_gate: Optional[asyncio.Event] = None
        self.user_info_gate: Optional[asyncio.Event] = None

        self.init_calls: List[InitOptions] = []
        self.login_calls: List[Optional[str]] = []
        self.logout_calls: List[str] = []
        self.update_calls: List[int] = []

        self._did_initialize = False
        self._token: Optional[str] = None
        self._refresh_token: Optional[str] = None
        self._id_token: Optional[str] = None
        self._issued = 0

    @property
    def did_initialize(self) -> bool:
        return self._did_initialize

    @property
    def authenticated(self) -> bool:
        return self._token is not None

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def refresh_token(self) -> Optional[str]:
        return self._refresh_token

    @property
    def id_token(self) -> Optional[str]:
        return self._id_token

    @property
    def token_expires_at(self) -> Optional[datetime]:
        if not self._token:
            return None
        exp = jwt.get_unverified_claims(self._token)["exp"]
        return datetime.fromtimestamp(exp, tz=timezone.utc)

    def set_event_handler(self, handler) -> None:
        self.handler = handler

    def issue_tokens(self) -> None:
        self._issued += 1
        self._token = make_jwt(realm=self.config.realm, n=self._issued)
        self._refresh_token = f"refresh-{self.config.realm}-{self._issued}"
        self._id_token = f"id-{self.config.realm}-{self._issued}"

    async def init(self, options: InitOptions) -> bool:
        self.init_calls.append(options)
        if self.init_error is not None:
            raise self.init_error

        authenticated = self.authenticate_on_init or (
            options.tokens is not None and self.accept_stored_tokens
        )
        if authenticated:
            self.issue_tokens()
        self._did_initialize = True

        if authenticated and self.handler is not None:
            await self.handler.on_auth_success()
        if self.handler is not None:
            await self.handler.on_ready(authenticated)
        return authenticated

    async def login(self, redirect_uri: Optional[str] = None) -> None:
        self.login_calls.append(redirect_uri)

    async def logout(self, redirect_uri: str) -> None:
        self.logout_calls.append(redirect_uri)
        self._token = self._refresh_token = self._id_token = None

    async def update_token(self, min_validity: int) -> bool:
        self.update_calls.append(min_validity)
        if self.update_gate is not None:
            await self.update_gate.wait()
        outcome = self.update_outcomes.pop(0) if self.update_outcomes else STILL_VALID

        if isinstance(outcome, BaseException):
            raise outcome
        if outcome == LOGGED_OUT:
            self._token = self._refresh_token = self._id_token = None
            if self.handler is not None:
                await self.handler.on_auth_logout()
            raise UnsolicitedLogout("Refresh token rejected")
        if outcome is REFRESHED:
            self.issue_tokens()
            if self.handler is not None:
                await self.handler.on_auth_refresh_success()
            return True
        return False

    async def load_user_info(self) -> Dict[str, Any]:
        if self.user_info_gate is not None:
            await self.user_info_gate.wait()
        if self.user_info_error is not None:
            raise self.user_info_error
        return dict(self.user_claims)

    async def complete_login(self) -> None:
        """Simulate the identity provider finishing an interactive login."""
        self.issue_tokens()
        await self.handler.on_auth_success()


class FakeClientFactory:
    """Client factory keeping every client it built, keyed by configuration name."""

    def __init__(self, **defaults: Any):
        self.clients: Dict[str, FakeIdentityClient] = {}
        self.created = 0
        # Attributes applied to every client built, e.g. authenticate_on_init=True
        self.defaults: Dict[str, Any] = defaults

    def __call__(self, config: KeycloakConfig, location: MemoryLocation) -> FakeIdentityClient:
        self.created += 1
        client = FakeIdentityClient(config, location)
        for attribute, value in self.defaults.items():
            setattr(client, attribute, value)
        self.clients[config.configuration_name] = client
        return client


@pytest.fixture
def storage():
    """In-memory session storage."""
    return MemorySessionStorage()


@pytest.fixture
def location():
    """Host location sitting on the application root."""
    return MemoryLocation(f"{APP_ORIGIN}/")


@pytest.fixture
def client_factory():
    return FakeClientFactory()


@pytest.fixture
def scheduler():
    return RefreshScheduler()


@pytest.fixture
def config():
    """Configuration with a fast refresh interval."""
    return KeycloakConfig(
        url="https://sso.example.com",
        realm="acme",
        client_id="web",
        redirect_uri=REDIRECT_URI,
        token_refresh_interval_seconds=0.01,
    )


@pytest.fixture
def client_registry(location, client_factory):
    return IdentityClientRegistry(location, client_factory)


@pytest_asyncio.fixture
async def orchestrator(config, storage, location, client_registry, scheduler):
    """Orchestrator wired to fakes; not started. Closed after the test."""
    orchestrator = SessionLifecycleOrchestrator(
        config,
        storage=storage,
        location=location,
        client_registry=client_registry,
        scheduler=scheduler,
    )
    yield orchestrator
    await orchestrator.close()
    scheduler.stop_all()
