"""State machine behind the leave-guild confirmation prompt."""

from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional, Tuple

CONFIRM_TIMEOUT = 30.0


class ConfirmationAction(str, Enum):
    CONFIRM = "confirm_leave"
    CANCEL = "cancel_leave"
    TIMEOUT = "timeout"


class ConfirmationEffect(str, Enum):
    LEAVE_GUILD = "leave_guild"
    SHOW_CANCELLED = "show_cancelled"
    CLEAR_CONTROLS = "clear_controls"


class ConfirmationOutcome(str, Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


@dataclass(frozen=True)
class ConfirmationSession:
    """State of one pending leave confirmation."""

    invoker_id: int
    target_guild_id: int
    created_at: float = 0.0
    expires_at: float = 0.0
    resolved: bool = False
    outcome: Optional[ConfirmationOutcome] = None

    @classmethod
    def open(
        cls,
        invoker_id: int,
        target_guild_id: int,
        *,
        timeout: float = CONFIRM_TIMEOUT,
        now: float = 0.0
    ) -> "ConfirmationSession":
        # The deadline is absolute: interactions resolve the prompt, they never extend it
        return cls(
            invoker_id=invoker_id,
            target_guild_id=target_guild_id,
            created_at=now,
            expires_at=now + timeout,
        )

    @property
    def state(self) -> str:
        return "resolved" if self.resolved else "pending"


def transition(
    session: ConfirmationSession,
    action: ConfirmationAction
) -> Tuple[ConfirmationSession, List[ConfirmationEffect]]:
    """
    Apply one event to a confirmation.

    Every event on a resolved confirmation is stale and yields no effects,
    which is what keeps the leave action at most once per confirmation.
    """
    if session.resolved:
        return session, []

    if action is ConfirmationAction.CONFIRM:
        return (
            replace(session, resolved=True, outcome=ConfirmationOutcome.CONFIRMED),
            [ConfirmationEffect.LEAVE_GUILD],
        )

    if action is ConfirmationAction.CANCEL:
        return (
            replace(session, resolved=True, outcome=ConfirmationOutcome.CANCELLED),
            [ConfirmationEffect.SHOW_CANCELLED],
        )

    if action is ConfirmationAction.TIMEOUT:
        return (
            replace(session, resolved=True, outcome=ConfirmationOutcome.EXPIRED),
            [ConfirmationEffect.CLEAR_CONTROLS],
        )

    raise ValueError(f"Unknown confirmation action: {action!r}")
