"""State machine behind the single-guild detail view."""

from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional, Tuple

from ..database.guild_directory import GuildRecord

DETAIL_TIMEOUT = 300.0


class DetailAction(str, Enum):
    LEAVE = "leave_guild"
    INVITE = "guild_invite"
    TIMEOUT = "timeout"


class DetailEffect(str, Enum):
    OPEN_CONFIRMATION = "open_confirmation"
    CREATE_INVITE = "create_invite"
    CLEAR_CONTROLS = "clear_controls"


@dataclass(frozen=True)
class DetailSession:
    """State of one guild detail message."""

    invoker_id: int
    guild: GuildRecord
    created_at: float = 0.0
    expires_at: float = 0.0
    timeout: float = DETAIL_TIMEOUT
    confirming: bool = False
    closed: bool = False

    @classmethod
    def open(
        cls,
        invoker_id: int,
        guild: GuildRecord,
        *,
        timeout: float = DETAIL_TIMEOUT,
        now: float = 0.0
    ) -> "DetailSession":
        return cls(
            invoker_id=invoker_id,
            guild=guild,
            created_at=now,
            expires_at=now + timeout,
            timeout=timeout,
        )


def parse_custom_id(custom_id: str) -> Optional[Tuple[DetailAction, int]]:
    """Split ``leave_guild_<id>`` / ``guild_invite_<id>`` into action and guild ID."""
    for action in (DetailAction.LEAVE, DetailAction.INVITE):
        prefix = f"{action.value}_"
        if custom_id.startswith(prefix):
            suffix = custom_id[len(prefix):]
            if suffix.isdigit():
                return action, int(suffix)
    return None


def transition(
    session: DetailSession,
    action: DetailAction,
    *,
    now: Optional[float] = None
) -> Tuple[DetailSession, List[DetailEffect]]:
    """
    Apply one event to a detail session.

    A second leave request while a confirmation is pending is ignored, so at
    most one confirmation exists per detail view.
    """
    if session.closed:
        return session, []

    if action is DetailAction.TIMEOUT:
        # A pending confirmation owns the message controls and clears them itself
        effects = [] if session.confirming else [DetailEffect.CLEAR_CONTROLS]
        return replace(session, closed=True), effects

    if session.confirming:
        return session, []

    if now is not None:
        session = replace(session, expires_at=now + session.timeout)

    if action is DetailAction.LEAVE:
        return replace(session, confirming=True), [DetailEffect.OPEN_CONFIRMATION]

    if action is DetailAction.INVITE:
        return session, [DetailEffect.CREATE_INVITE]

    raise ValueError(f"Unknown detail action: {action!r}")
