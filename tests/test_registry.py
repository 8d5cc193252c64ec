import asyncio
import unittest
from dataclasses import replace
from unittest.mock import AsyncMock

from guilddesk.sessions.confirmation import ConfirmationSession
from guilddesk.sessions.registry import SessionRegistry, session_key


class TestSessionRegistry(unittest.IsolatedAsyncioTestCase):

    async def asyncSetUp(self):
        self.registry = SessionRegistry()

    async def asyncTearDown(self):
        for entry in self.registry.entries():
            await self.registry.close(entry.key)

    def make_state(self, invoker_id=7, timeout=60.0):
        return ConfirmationSession.open(invoker_id, 1, timeout=timeout, now=self.registry.now())

    async def test_open_and_get(self):
        entry = self.registry.open("list", 100, self.make_state())

        self.assertEqual(entry.key, session_key("list", 100))
        self.assertEqual(entry.key, "list:100")
        self.assertIs(self.registry.get("list:100"), entry)
        self.assertEqual(entry.invoker_id, 7)
        self.assertEqual(len(self.registry), 1)

    async def test_expires_after_deadline(self):
        on_expire = AsyncMock()
        entry = self.registry.open("confirm", 1, self.make_state(timeout=0.05), on_expire)

        await asyncio.sleep(0.2)

        on_expire.assert_awaited_once_with(entry)
        self.assertTrue(entry.closed)
        self.assertNotIn("confirm:1", self.registry)

    async def test_commit_pushes_deadline_back(self):
        on_expire = AsyncMock()
        entry = self.registry.open("list", 1, self.make_state(timeout=0.1), on_expire)

        await asyncio.sleep(0.05)
        self.registry.commit(entry, replace(entry.state, expires_at=self.registry.now() + 0.3))
        await asyncio.sleep(0.1)
        on_expire.assert_not_awaited()

        await asyncio.sleep(0.4)
        on_expire.assert_awaited_once()

    async def test_expire_is_idempotent(self):
        on_expire = AsyncMock()
        self.registry.open("list", 1, self.make_state(), on_expire)

        self.assertTrue(await self.registry.expire("list:1"))
        self.assertFalse(await self.registry.expire("list:1"))
        self.assertFalse(await self.registry.close("list:1"))
        on_expire.assert_awaited_once()

    async def test_close_skips_teardown(self):
        on_expire = AsyncMock()
        entry = self.registry.open("detail", 1, self.make_state(), on_expire)

        self.assertTrue(await self.registry.close("detail:1"))

        on_expire.assert_not_awaited()
        self.assertTrue(entry.closed)
        self.assertFalse(self.registry.commit(entry, self.make_state()))

    async def test_exclusive_session_supersedes_previous(self):
        first_expire = AsyncMock()
        first = self.registry.open("list", 1, self.make_state(), first_expire, exclusive=True)
        second = self.registry.open("list", 2, self.make_state(), AsyncMock(), exclusive=True)

        await asyncio.sleep(0.01)

        first_expire.assert_awaited_once_with(first)
        self.assertNotIn(first.key, self.registry)
        self.assertIn(second.key, self.registry)
        self.assertEqual(self.registry.gate.active(7, "list"), second.key)

    async def test_supersede_task_is_kept_until_done(self):
        release = asyncio.Event()

        async def slow_teardown(entry):
            await release.wait()

        self.registry.open("list", 1, self.make_state(), slow_teardown, exclusive=True)
        self.registry.open("list", 2, self.make_state(), AsyncMock(), exclusive=True)
        await asyncio.sleep(0)

        self.assertEqual(len(self.registry._tasks), 1)
        (task,) = self.registry._tasks
        self.assertEqual(task.get_name(), "session-supersede-list:1")

        release.set()
        await task
        await asyncio.sleep(0)

        self.assertEqual(self.registry._tasks, set())

    async def test_other_invokers_are_not_superseded(self):
        first = self.registry.open("list", 1, self.make_state(invoker_id=1), exclusive=True)
        self.registry.open("list", 2, self.make_state(invoker_id=2), exclusive=True)

        await asyncio.sleep(0.01)

        self.assertIn(first.key, self.registry)

    async def test_failing_teardown_is_logged(self):
        on_expire = AsyncMock(side_effect=RuntimeError("edit failed"))
        self.registry.open("list", 1, self.make_state(), on_expire)

        with self.assertLogs("guilddesk.sessions.registry", level="WARNING"):
            self.assertTrue(await self.registry.expire("list:1"))

        self.assertNotIn("list:1", self.registry)

    async def test_expire_all(self):
        callbacks = [AsyncMock() for _ in range(3)]
        for message_id, callback in enumerate(callbacks):
            self.registry.open("list", message_id, self.make_state(invoker_id=message_id), callback)

        await self.registry.expire_all()

        self.assertEqual(len(self.registry), 0)
        for callback in callbacks:
            callback.assert_awaited_once()


if __name__ == "__main__":
    unittest.main()
