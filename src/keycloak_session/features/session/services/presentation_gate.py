"""Presentation gate: what the host renders for a session record."""

from enum import Enum
from typing import Any, Optional

from ..entities.session_record import SessionRecord


class Presentation(str, Enum):
    LOADING = "loading"
    ERROR = "error"
    SESSION_LOST = "session_lost"
    CHILDREN = "children"
    NOTHING = "nothing"


def resolve_presentation(
    record: SessionRecord,
    *,
    error_component: Optional[Any] = None,
    session_lost_component: Optional[Any] = None,
) -> Presentation:
    """Decide what to render, in precedence order loading, error, session lost, children.

    An error or lost session without a matching component renders nothing
    rather than the protected children.
    """
    if record.is_loading:
        return Presentation.LOADING
    if record.has_error:
        return Presentation.ERROR if error_component is not None else Presentation.NOTHING
    if record.session_lost:
        return Presentation.SESSION_LOST if session_lost_component is not None else Presentation.NOTHING
    return Presentation.CHILDREN
