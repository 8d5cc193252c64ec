"""Who may drive an interactive session."""

import logging
from typing import Dict, Optional, Tuple

logger = logging.getLogger("guilddesk.sessions.gate")


class InteractionGate:
    """Ownership rules for interactive sessions.

    Only the invoker of a session may act on its controls, and each invoker
    holds at most one active session per kind.
    """

    def __init__(self):
        self._active: Dict[Tuple[int, str], str] = {}

    @staticmethod
    def authorize(user_id: int, session) -> bool:
        """True only if ``user_id`` is the invoker of ``session``."""
        return session is not None and user_id == session.invoker_id

    def claim(self, invoker_id: int, kind: str, key: str) -> Optional[str]:
        """
        Record ``key`` as the invoker's active session of ``kind``.

        Returns:
            Key of the session this one supersedes, if any
        """
        previous = self._active.get((invoker_id, kind))
        self._active[(invoker_id, kind)] = key
        if previous is not None and previous != key:
            logger.debug(f"Session {key} supersedes {previous} for user {invoker_id}")
            return previous
        return None

    def release(self, invoker_id: int, kind: str, key: str) -> None:
        """Forget ``key`` if it is still the invoker's active session of ``kind``."""
        if self._active.get((invoker_id, kind)) == key:
            del self._active[(invoker_id, kind)]

    def active(self, invoker_id: int, kind: str) -> Optional[str]:
        return self._active.get((invoker_id, kind))
