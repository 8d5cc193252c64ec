"""Session table keyed by the message that hosts the controls."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set

from .gate import InteractionGate

logger = logging.getLogger("guilddesk.sessions.registry")

ExpireCallback = Callable[["SessionEntry"], Awaitable[None]]


def session_key(kind: str, message_id: int) -> str:
    return f"{kind}:{message_id}"


@dataclass(eq=False)
class SessionEntry:
    """One live session: its current state plus lifecycle bookkeeping."""

    key: str
    kind: str
    message_id: int
    state: Any
    on_expire: Optional[ExpireCallback] = None
    exclusive: bool = False
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    closed: bool = False
    timer: Optional[asyncio.Task] = None

    @property
    def invoker_id(self) -> int:
        return self.state.invoker_id


class SessionRegistry:
    """Owns every interactive session of the process.

    Each rendered message hosts at most one session per kind. Every session
    gets its own timer task that fires ``on_expire`` once the session state's
    ``expires_at`` passes; the deadline is re-read after each wake-up so
    committed transitions can push it back. Closing is idempotent.
    """

    def __init__(self, gate: Optional[InteractionGate] = None):
        self.gate = gate or InteractionGate()
        self._entries: Dict[str, SessionEntry] = {}
        self._tasks: Set[asyncio.Task] = set()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    @staticmethod
    def now() -> float:
        return asyncio.get_running_loop().time()

    def get(self, key: str) -> Optional[SessionEntry]:
        return self._entries.get(key)

    def entries(self, kind: Optional[str] = None) -> List[SessionEntry]:
        return [e for e in self._entries.values() if kind is None or e.kind == kind]

    def open(
        self,
        kind: str,
        message_id: int,
        state: Any,
        on_expire: Optional[ExpireCallback] = None,
        *,
        exclusive: bool = False
    ) -> SessionEntry:
        """
        Register a session and start its timer.

        Args:
            kind: Session kind ("list", "detail", "confirm")
            message_id: Message hosting the session's controls
            state: Initial state; must expose ``invoker_id`` and ``expires_at``
            on_expire: Teardown run when the deadline passes or the session is superseded
            exclusive: Supersede the invoker's previous session of the same kind

        Returns:
            The new SessionEntry
        """
        key = session_key(kind, message_id)
        if key in self._entries:
            # A message never hosts two sessions of one kind; the old one is stale
            logger.warning(f"Replacing existing session {key}")
            self._discard(self._entries[key])

        entry = SessionEntry(
            key=key,
            kind=kind,
            message_id=message_id,
            state=state,
            on_expire=on_expire,
            exclusive=exclusive,
        )
        self._entries[key] = entry
        entry.timer = asyncio.create_task(self._run_timer(entry), name=f"session-timer-{key}")

        if exclusive:
            superseded = self.gate.claim(entry.invoker_id, kind, key)
            if superseded is not None:
                task = asyncio.create_task(
                    self.expire(superseded), name=f"session-supersede-{superseded}"
                )
                self._tasks.add(task)
                task.add_done_callback(self._tasks.discard)

        logger.debug(f"Opened session {key} for user {entry.invoker_id}")
        return entry

    def commit(self, entry: SessionEntry, state: Any) -> bool:
        """Store a new state. Ignored once the session is closed."""
        if entry.closed:
            logger.debug(f"Dropping state for closed session {entry.key}")
            return False
        entry.state = state
        return True

    async def expire(self, key: str) -> bool:
        """
        Tear a session down and run its ``on_expire`` callback.

        Returns:
            False if the session was already gone
        """
        entry = self._entries.get(key)
        if entry is None or entry.closed:
            return False

        self._discard(entry)
        logger.debug(f"Session {key} expired")

        if entry.on_expire is not None:
            try:
                await entry.on_expire(entry)
            except Exception as exc:
                logger.warning(f"Teardown of session {key} failed: {exc}", exc_info=True)
        return True

    async def close(self, key: str) -> bool:
        """
        Remove a session without running its teardown callback.

        Returns:
            False if the session was already gone
        """
        entry = self._entries.get(key)
        if entry is None or entry.closed:
            return False

        self._discard(entry)
        logger.debug(f"Session {key} closed")
        return True

    async def expire_all(self) -> None:
        """Tear down every session, e.g. on shutdown."""
        for key in list(self._entries):
            await self.expire(key)

    def _discard(self, entry: SessionEntry) -> None:
        entry.closed = True
        if self._entries.get(entry.key) is entry:
            del self._entries[entry.key]
        if entry.exclusive:
            self.gate.release(entry.invoker_id, entry.kind, entry.key)

        timer = entry.timer
        if timer is not None and timer is not asyncio.current_task() and not timer.done():
            timer.cancel()

    async def _run_timer(self, entry: SessionEntry) -> None:
        try:
            while not entry.closed:
                delay = entry.state.expires_at - self.now()
                if delay <= 0:
                    break
                await asyncio.sleep(delay)
        except asyncio.CancelledError:
            return

        if not entry.closed:
            await self.expire(entry.key)
