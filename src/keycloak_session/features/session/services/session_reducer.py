"""Session state machine.

Every change to a ``SessionRecord`` goes through ``reduce_session``: a pure
function of the previous record and one action. Actions that the current
status does not allow raise ``InvalidSessionTransition``; the orchestrator
treats those as stale events.

Allowed status transitions::

    INITIALIZING    -> AUTHENTICATED | UNAUTHENTICATED | AUTH_ERROR
    UNAUTHENTICATED -> AUTHENTICATED | AUTH_ERROR
    AUTHENTICATED   -> AUTHENTICATED | SESSION_LOST | AUTH_ERROR
    AUTH_ERROR      -> recovery status           (SET_ERROR(None) only)
    SESSION_LOST    -> UNAUTHENTICATED           (SET_SESSION_LOST(False) only)
"""

from dataclasses import dataclass, replace
from typing import ClassVar, Optional, Union

from ....core.exceptions import InvalidSessionTransition
from ..entities.keycloak_user import KeycloakUser
from ..entities.session_record import SessionRecord, SessionStatus


@dataclass(frozen=True)
class SetLoading:
    type: ClassVar[str] = "SET_LOADING"
    value: bool


@dataclass(frozen=True)
class SetToken:
    type: ClassVar[str] = "SET_TOKEN"
    access_token: Optional[str]
    refresh_token: Optional[str] = None
    id_token: Optional[str] = None
    is_authenticated: bool = True


@dataclass(frozen=True)
class SetUserInfo:
    type: ClassVar[str] = "SET_USER_INFO"
    user_info: Optional[KeycloakUser]


@dataclass(frozen=True)
class SetError:
    type: ClassVar[str] = "SET_ERROR"
    error: Optional[BaseException]


@dataclass(frozen=True)
class SetSessionLost:
    type: ClassVar[str] = "SET_SESSION_LOST"
    value: bool


SessionAction = Union[SetLoading, SetToken, SetUserInfo, SetError, SetSessionLost]

_TOKEN_SOURCES = (
    SessionStatus.INITIALIZING,
    SessionStatus.UNAUTHENTICATED,
    SessionStatus.AUTHENTICATED,
)


def _reject(record: SessionRecord, action: SessionAction, **context) -> InvalidSessionTransition:
    return InvalidSessionTransition(
        action.type,
        record.status.value,
        {"configuration_name": record.configuration_name, **context},
    )


def _without_tokens(record: SessionRecord, **changes) -> SessionRecord:
    return replace(
        record,
        access_token=None,
        refresh_token=None,
        id_token=None,
        user_info=None,
        **changes,
    )


def _set_loading(record: SessionRecord, action: SetLoading) -> SessionRecord:
    if not action.value and record.status is SessionStatus.INITIALIZING:
        # Initialization finished without a session
        return replace(record, status=SessionStatus.UNAUTHENTICATED, is_loading=False)
    return replace(record, is_loading=action.value)


def _set_token(record: SessionRecord, action: SetToken) -> SessionRecord:
    if not action.is_authenticated or not action.access_token:
        raise _reject(record, action, reason="SET_TOKEN requires an authenticated, non-empty access token")
    if record.status not in _TOKEN_SOURCES:
        raise _reject(record, action)
    return replace(
        record,
        status=SessionStatus.AUTHENTICATED,
        is_loading=False,
        access_token=action.access_token,
        refresh_token=action.refresh_token,
        id_token=action.id_token,
        last_error=None,
        recovery_status=None,
    )


def _set_user_info(record: SessionRecord, action: SetUserInfo) -> SessionRecord:
    if record.status is not SessionStatus.AUTHENTICATED:
        raise _reject(record, action)
    return replace(record, user_info=action.user_info)


def _set_error(record: SessionRecord, action: SetError) -> SessionRecord:
    if action.error is not None:
        if record.status is SessionStatus.SESSION_LOST:
            raise _reject(record, action)
        if record.status is SessionStatus.AUTH_ERROR:
            return replace(record, last_error=action.error, is_loading=False)
        return _without_tokens(
            record,
            status=SessionStatus.AUTH_ERROR,
            is_loading=False,
            last_error=action.error,
            recovery_status=record.status,
        )

    if record.status is not SessionStatus.AUTH_ERROR:
        if record.status is SessionStatus.SESSION_LOST:
            raise _reject(record, action)
        return replace(record, last_error=None)

    restored = record.recovery_status or SessionStatus.UNAUTHENTICATED
    if restored is SessionStatus.AUTHENTICATED:
        # Tokens were dropped on the way into AUTH_ERROR
        restored = SessionStatus.UNAUTHENTICATED
    return replace(record, status=restored, last_error=None, recovery_status=None)


def _set_session_lost(record: SessionRecord, action: SetSessionLost) -> SessionRecord:
    if action.value:
        if record.status is SessionStatus.SESSION_LOST:
            return record
        if record.status is not SessionStatus.AUTHENTICATED:
            raise _reject(record, action)
        return _without_tokens(
            record,
            status=SessionStatus.SESSION_LOST,
            is_loading=False,
            recovery_status=record.status,
        )

    if record.status is not SessionStatus.SESSION_LOST:
        return record
    return replace(record, status=SessionStatus.UNAUTHENTICATED, recovery_status=None)


_HANDLERS = {
    SetLoading: _set_loading,
    SetToken: _set_token,
    SetUserInfo: _set_user_info,
    SetError: _set_error,
    SetSessionLost: _set_session_lost,
}


def reduce_session(record: SessionRecord, action: SessionAction) -> SessionRecord:
    """Apply one action to a session record.

    Args:
        record: Current record
        action: Action to apply

    Returns:
        The next record (the same object when the action changes nothing)

    Raises:
        InvalidSessionTransition: If the action is not allowed from the current status
    """
    handler = _HANDLERS.get(type(action))
    if handler is None:
        raise TypeError(f"Unknown session action: {action!r}")
    return handler(record, action)
