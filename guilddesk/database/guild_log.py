"""SQLite log of guild join/leave events."""

import aiosqlite
import logging
from pathlib import Path
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


logger = logging.getLogger("guilddesk.guild_log")


class GuildEventLog:
    """SQLite-backed history of the guilds the bot joined and left."""

    JOINED = "joined"
    REMOVED = "removed"
    LEFT_BY_OPERATOR = "left_by_operator"

    EVENTS = (JOINED, REMOVED, LEFT_BY_OPERATOR)

    def __init__(self, db_path: str = "data/guild_events.db"):
        """
        Initialize the guild event log.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)

        # Create data directory if it doesn't exist
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._initialized = False

    async def initialize(self):
        """Initialize the database schema."""
        if self._initialized:
            return

        async with aiosqlite.connect(self.db_path) as db:
            await db.execute("""
                CREATE TABLE IF NOT EXISTS guild_events (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    guild_id INTEGER NOT NULL,
                    guild_name TEXT NOT NULL,
                    member_count INTEGER,
                    event TEXT NOT NULL,
                    actor_id INTEGER,
                    created_at TEXT NOT NULL
                )
            """)

            await db.execute("""
                CREATE INDEX IF NOT EXISTS idx_event_created
                ON guild_events(event, created_at)
            """)

            await db.commit()

        self._initialized = True
        logger.info(f"Guild event log initialized at {self.db_path}")

    async def record(
        self,
        event: str,
        guild_id: int,
        guild_name: str,
        member_count: Optional[int] = None,
        actor_id: Optional[int] = None,
        created_at: Optional[datetime] = None
    ) -> None:
        """
        Store a guild event.

        Args:
            event: One of JOINED, REMOVED, LEFT_BY_OPERATOR
            guild_id: Discord guild ID
            guild_name: Guild name at the time of the event
            member_count: Member count at the time of the event
            actor_id: Operator who triggered the event, if any
            created_at: Event time (defaults to now, UTC)
        """
        if event not in self.EVENTS:
            raise ValueError(f"Unknown guild event: {event}")

        await self.initialize()

        created_at = created_at or datetime.now(timezone.utc)

        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """
                INSERT INTO guild_events (guild_id, guild_name, member_count, event, actor_id, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (guild_id, guild_name, member_count, event, actor_id, created_at.astimezone(timezone.utc).isoformat())
            )
            await db.commit()

        logger.debug(f"Recorded {event} for guild {guild_id}")

    async def count_since(self, event: str, since: datetime) -> int:
        """
        Count events of one kind since a point in time.

        Args:
            event: Event kind
            since: Lower bound (inclusive), timezone-aware

        Returns:
            Number of matching events
        """
        await self.initialize()

        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute(
                "SELECT COUNT(*) FROM guild_events WHERE event = ? AND created_at >= ?",
                (event, since.astimezone(timezone.utc).isoformat())
            ) as cursor:
                row = await cursor.fetchone()

        return row[0] if row else 0

    async def recent(self, limit: int = 10) -> List[Dict[str, Any]]:
        """
        Get the most recent guild events, newest first.

        Args:
            limit: Maximum number of events

        Returns:
            List of event rows as dicts
        """
        await self.initialize()

        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute(
                """
                SELECT guild_id, guild_name, member_count, event, actor_id, created_at
                FROM guild_events
                ORDER BY created_at DESC, id DESC
                LIMIT ?
                """,
                (limit,)
            ) as cursor:
                rows = await cursor.fetchall()

        return [dict(row) for row in rows]
