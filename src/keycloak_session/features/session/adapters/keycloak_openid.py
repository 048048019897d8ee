"""Keycloak OpenID Connect identity-provider client."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from urllib.parse import parse_qs, urlencode, urlsplit, urlunsplit

import httpx
from jose import JWTError, jwt
from keycloak import KeycloakOpenID
from keycloak.exceptions import KeycloakError

from ....config.logging_config import mask_token
from ....core.exceptions import (
    AuthenticationError,
    InitializationError,
    RefreshFailure,
    UnsolicitedLogout,
)
from ..entities.keycloak_config import KeycloakConfig
from ..entities.protocols import HostLocation, IdentityProviderEvents, InitOptions
from ..entities.stored_tokens import StoredTokens

logger = logging.getLogger("keycloak_session.provider")

OAUTH_CALLBACK_PARAMS = ("code", "state", "session_state", "iss", "error", "error_description")


class KeycloakOpenIDClient:
    """Identity-provider client backed by python-keycloak.

    Mirrors the browser adapter contract: ``init`` resolves whether a session
    exists (finishing an authorization-code callback or reusing stored tokens),
    ``login``/``logout`` navigate the host, ``update_token`` renews ahead of
    expiry. Outcomes are reported to the registered event handler.
    """

    def __init__(
        self,
        config: KeycloakConfig,
        location: HostLocation,
        openid_client: Optional[KeycloakOpenID] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize Keycloak OpenID client.

        Args:
            config: Session configuration (server, realm, client, discovery override)
            location: Host location used for redirects and callback parsing
            openid_client: Pre-built python-keycloak client, mainly for tests
            http_client: HTTP client used to fetch an overridden discovery document
        """
        self.config = config
        self._location = location
        self._openid = openid_client or KeycloakOpenID(
            server_url=config.url,
            realm_name=config.realm,
            client_id=config.client_id,
        )
        self._http_client = http_client
        self._events: Optional[IdentityProviderEvents] = None
        self._discovery: Optional[Dict[str, Any]] = None
        self._did_initialize = False
        self._enable_logging = False
        self._scope: Optional[str] = config.scope

        self._token: Optional[str] = None
        self._refresh_token: Optional[str] = None
        self._id_token: Optional[str] = None

    # Token state

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
        """Expiry of the access token, read from its unverified claims."""
        return self._expiry_of(self._token)

    @staticmethod
    def _expiry_of(token: Optional[str]) -> Optional[datetime]:
        if not token:
            return None
        try:
            exp = jwt.get_unverified_claims(token).get("exp")
        except JWTError:
            return None
        if exp is None:
            return None
        return datetime.fromtimestamp(int(exp), tz=timezone.utc)

    def set_event_handler(self, handler: Optional[IdentityProviderEvents]) -> None:
        self._events = handler

    def _set_tokens(self, response: Dict[str, Any]) -> None:
        self._token = response.get("access_token")
        self._refresh_token = response.get("refresh_token", self._refresh_token)
        self._id_token = response.get("id_token", self._id_token)
        self._log(f"Tokens updated, access token {mask_token(self._token)} expires at {self.token_expires_at}")

    def _clear_tokens(self) -> None:
        self._token = None
        self._refresh_token = None
        self._id_token = None

    def _log(self, message: str) -> None:
        if self._enable_logging:
            logger.debug(message)

    async def _emit(self, event: str, *args) -> None:
        if self._events is None:
            return
        await getattr(self._events, event)(*args)

    # Lifecycle

    async def init(self, options: InitOptions) -> bool:
        """Initialize the client.

        Raises:
            InitializationError: If the discovery document cannot be loaded
        """
        self._did_initialize = False
        self._enable_logging = options.enable_logging
        if options.scope:
            self._scope = options.scope

        self._discovery = await self._load_discovery()

        authenticated = False
        callback = self._parse_callback(options.redirect_uri)
        if callback is not None:
            authenticated = await self._finish_login(callback, options.redirect_uri)
        elif options.tokens is not None and not options.tokens.is_empty:
            authenticated = await self._restore(options.tokens)

        self._did_initialize = True
        self._log(f"Client initialized for realm {self.config.realm}, authenticated={authenticated}")

        if authenticated:
            await self._emit("on_auth_success")
        await self._emit("on_ready", authenticated)
        return authenticated

    async def _load_discovery(self) -> Dict[str, Any]:
        try:
            if self.config.well_known_url_prefix:
                url = self.config.well_known_url
                if self._http_client is not None:
                    response = await self._http_client.get(url)
                else:
                    async with httpx.AsyncClient() as client:
                        response = await client.get(url)
                response.raise_for_status()
                discovery = response.json()
            else:
                discovery = await self._openid.a_well_known()
        except (KeycloakError, httpx.HTTPError, ValueError) as e:
            logger.error(f"Failed to load discovery document for realm {self.config.realm}: {e}")
            raise InitializationError(
                "Discovery document could not be loaded",
                details={"realm": self.config.realm, "url": self.config.well_known_url, "error": str(e)},
            ) from e

        if not isinstance(discovery, dict) or "authorization_endpoint" not in discovery:
            raise InitializationError(
                "Invalid discovery document",
                details={"realm": self.config.realm, "url": self.config.well_known_url},
            )
        return discovery

    def _parse_callback(self, redirect_uri: Optional[str]) -> Optional[Dict[str, str]]:
        href = self._location.href
        if not redirect_uri or not href.startswith(redirect_uri):
            return None
        params = {key: values[0] for key, values in parse_qs(urlsplit(href).query).items()}
        if "code" not in params and "error" not in params:
            return None
        return params

    def _strip_callback_params(self) -> None:
        parts = urlsplit(self._location.href)
        query = [
            (key, value)
            for key, values in parse_qs(parts.query).items()
            for value in values
            if key not in OAUTH_CALLBACK_PARAMS
        ]
        clean = urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query), parts.fragment))
        self._location.replace_state(clean)

    async def _finish_login(self, callback: Dict[str, str], redirect_uri: Optional[str]) -> bool:
        self._strip_callback_params()

        if "error" in callback:
            error = AuthenticationError(
                callback.get("error_description") or callback["error"],
                error_code=callback["error"],
            )
            await self._emit("on_auth_error", error)
            return False

        try:
            response = await self._openid.a_token(
                grant_type="authorization_code",
                code=callback["code"],
                redirect_uri=redirect_uri,
            )
        except KeycloakError as e:
            logger.warning(f"Authorization code exchange failed: {e}")
            await self._emit(
                "on_auth_error",
                AuthenticationError("Authorization code exchange failed", details={"error": str(e)}),
            )
            return False

        self._set_tokens(response)
        return self.authenticated

    async def _restore(self, tokens: StoredTokens) -> bool:
        expires_at = self._expiry_of(tokens.access_token)
        if tokens.access_token and expires_at and expires_at > datetime.now(timezone.utc):
            self._token = tokens.access_token
            self._refresh_token = tokens.refresh_token
            self._id_token = tokens.id_token
            self._log(f"Reusing stored access token {mask_token(self._token)}")
            return True

        if not tokens.refresh_token:
            return False

        try:
            response = await self._openid.a_refresh_token(tokens.refresh_token)
        except KeycloakError as e:
            self._log(f"Stored refresh token rejected: {e}")
            self._clear_tokens()
            return False

        self._id_token = tokens.id_token
        self._set_tokens(response)
        return self.authenticated

    # Redirects

    async def login(self, redirect_uri: Optional[str] = None) -> None:
        if self._discovery is None:
            raise AuthenticationError("Client is not initialized", error_code="not_initialized")

        scopes = ["openid"]
        if self._scope:
            scopes.extend(scope for scope in self._scope.split() if scope != "openid")

        params = {
            "client_id": self.config.client_id,
            "redirect_uri": redirect_uri or self.config.redirect_uri or self._location.href,
            "response_type": "code",
            "scope": " ".join(scopes),
        }
        url = f"{self._discovery['authorization_endpoint']}?{urlencode(params)}"
        self._log(f"Redirecting to login at {self._discovery['authorization_endpoint']}")
        self._location.assign(url)

    async def logout(self, redirect_uri: str) -> None:
        if self._discovery is None:
            raise AuthenticationError("Client is not initialized", error_code="not_initialized")

        params = {
            "client_id": self.config.client_id,
            "post_logout_redirect_uri": redirect_uri,
        }
        if self._id_token:
            params["id_token_hint"] = self._id_token

        endpoint = self._discovery.get("end_session_endpoint") or f"{self.config.realm_url}/protocol/openid-connect/logout"
        self._clear_tokens()
        self._log(f"Redirecting to logout at {endpoint}")
        self._location.assign(f"{endpoint}?{urlencode(params)}")

    # Tokens

    async def update_token(self, min_validity: int) -> bool:
        """Renew tokens when the access token expires within ``min_validity`` seconds.

        Raises:
            UnsolicitedLogout: If the refresh grant was rejected (logout already signalled)
            RefreshFailure: If renewal failed for any other reason
        """
        if not self._refresh_token:
            raise RefreshFailure("No refresh token available", error_code="no_refresh_token")

        expires_at = self.token_expires_at
        if expires_at is not None:
            remaining = expires_at - datetime.now(timezone.utc)
            if remaining > timedelta(seconds=min_validity):
                return False

        try:
            response = await self._openid.a_refresh_token(self._refresh_token)
        except KeycloakError as e:
            if self._is_rejected_grant(e):
                logger.warning(f"Refresh grant rejected for realm {self.config.realm}: {e}")
                self._clear_tokens()
                await self._emit("on_auth_logout")
                raise UnsolicitedLogout(
                    "Refresh token is expired or the session was revoked",
                    details={"realm": self.config.realm, "error": str(e)},
                ) from e
            raise RefreshFailure(
                "Token refresh failed",
                details={"realm": self.config.realm, "error": str(e)},
            ) from e

        self._set_tokens(response)
        await self._emit("on_auth_refresh_success")
        return True

    @staticmethod
    def _is_rejected_grant(error: KeycloakError) -> bool:
        if getattr(error, "response_code", None) in (400, 401):
            return True
        return "invalid_grant" in str(error).lower()

    async def load_user_info(self) -> Dict[str, Any]:
        if not self._token:
            raise AuthenticationError("Cannot load user info without an access token")
        try:
            return await self._openid.a_userinfo(self._token)
        except KeycloakError as e:
            raise AuthenticationError("User info retrieval failed", details={"error": str(e)}) from e
