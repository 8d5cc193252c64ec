import tempfile
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path

from guilddesk.database.guild_log import GuildEventLog


class TestGuildEventLog(unittest.IsolatedAsyncioTestCase):

    async def asyncSetUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.log = GuildEventLog(db_path=str(Path(self.tmp.name) / "events.db"))
        await self.log.initialize()

    async def asyncTearDown(self):
        self.tmp.cleanup()

    async def test_count_since(self):
        now = datetime.now(timezone.utc)
        await self.log.record(GuildEventLog.JOINED, 1, "One", 10, created_at=now - timedelta(days=10))
        await self.log.record(GuildEventLog.JOINED, 2, "Two", 20, created_at=now - timedelta(days=2))
        await self.log.record(GuildEventLog.JOINED, 3, "Three", 30)
        await self.log.record(GuildEventLog.REMOVED, 1, "One", 10)

        since = now - timedelta(days=7)
        self.assertEqual(await self.log.count_since(GuildEventLog.JOINED, since), 2)
        self.assertEqual(await self.log.count_since(GuildEventLog.REMOVED, since), 1)
        self.assertEqual(await self.log.count_since(GuildEventLog.LEFT_BY_OPERATOR, since), 0)

    async def test_recent_newest_first(self):
        now = datetime.now(timezone.utc)
        await self.log.record(GuildEventLog.JOINED, 1, "Old", created_at=now - timedelta(hours=2))
        await self.log.record(
            GuildEventLog.LEFT_BY_OPERATOR, 2, "New", 5, actor_id=77, created_at=now
        )

        rows = await self.log.recent(limit=1)

        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["guild_name"], "New")
        self.assertEqual(rows[0]["event"], GuildEventLog.LEFT_BY_OPERATOR)
        self.assertEqual(rows[0]["actor_id"], 77)

    async def test_unknown_event_rejected(self):
        with self.assertRaises(ValueError):
            await self.log.record("exploded", 1, "One")


if __name__ == "__main__":
    unittest.main()
