"""Session lifecycle services."""

from .lifecycle_orchestrator import SessionLifecycleOrchestrator, SessionView
from .presentation_gate import Presentation, resolve_presentation
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
from .session_registry import SessionRegistry

__all__ = [
    "SessionLifecycleOrchestrator",
    "SessionView",
    "Presentation",
    "resolve_presentation",
    "RefreshScheduler",
    "SessionAction",
    "SetError",
    "SetLoading",
    "SetSessionLost",
    "SetToken",
    "SetUserInfo",
    "reduce_session",
    "SessionRegistry",
]
