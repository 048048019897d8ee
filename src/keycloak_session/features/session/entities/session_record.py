"""Session record entity: the authoritative state of one configuration."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .keycloak_user import KeycloakUser


class SessionStatus(str, Enum):
    """Authentication status of a session."""
    INITIALIZING = "initializing"
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"
    AUTH_ERROR = "auth_error"
    SESSION_LOST = "session_lost"

    @property
    def is_terminal(self) -> bool:
        """Terminal for the current session; left only through an explicit retry."""
        return self in (SessionStatus.AUTH_ERROR, SessionStatus.SESSION_LOST)


@dataclass(frozen=True)
class SessionRecord:
    """Immutable snapshot of a session.

    Only the session reducer produces new records. Tokens are present exactly
    when the status is AUTHENTICATED.
    """

    configuration_name: str
    status: SessionStatus = SessionStatus.INITIALIZING
    is_loading: bool = True

    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    id_token: Optional[str] = None

    user_info: Optional[KeycloakUser] = None
    last_error: Optional[BaseException] = None

    # Status restored when an error or session-lost condition is cleared
    recovery_status: Optional[SessionStatus] = None

    def __post_init__(self):
        """Validate the token/status invariant."""
        if not self.configuration_name:
            raise ValueError("configuration_name is required")
        if (self.status is SessionStatus.AUTHENTICATED) != bool(self.access_token):
            raise ValueError("access_token must be present exactly when the session is authenticated")

    @property
    def is_authenticated(self) -> bool:
        return self.status is SessionStatus.AUTHENTICATED

    @property
    def session_lost(self) -> bool:
        return self.status is SessionStatus.SESSION_LOST

    @property
    def has_error(self) -> bool:
        return self.status is SessionStatus.AUTH_ERROR

    @classmethod
    def initial(cls, configuration_name: str) -> "SessionRecord":
        """Create the record a configuration starts with."""
        return cls(configuration_name=configuration_name)

    def __repr__(self) -> str:
        return (
            f"SessionRecord(configuration_name={self.configuration_name!r}, "
            f"status={self.status.value}, is_loading={self.is_loading}, "
            f"has_token={bool(self.access_token)}, last_error={self.last_error!r})"
        )
