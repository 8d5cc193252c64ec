import os
import tempfile
import unittest
from pathlib import Path

from guilddesk.utils.config import Config


class TestConfig(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.path = Path(self.tmp.name) / "config.yaml"

    def tearDown(self):
        self.tmp.cleanup()

    def write(self, text):
        self.path.write_text(text, encoding="utf-8")
        return Config(str(self.path))

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            Config(os.path.join(self.tmp.name, "missing.yaml"))

    def test_defaults(self):
        config = self.write("discord:\n  token: abc\n")

        self.assertEqual(config.discord_token, "abc")
        self.assertEqual(config.page_size, 10)
        self.assertEqual(config.list_timeout, 600)
        self.assertEqual(config.detail_timeout, 300)
        self.assertEqual(config.confirm_timeout, 30)
        self.assertEqual(config.admin_users, [])
        self.assertIsNone(config.log_channel_id)
        self.assertFalse(config.dm_owner_on_guild_events)
        self.assertEqual(config.database_path, "data/guild_events.db")
        self.assertEqual(config.log_level, "INFO")

    def test_values(self):
        config = self.write(
            "permissions:\n"
            "  admin_users: [1, '2']\n"
            "  admin_roles: [3]\n"
            "guilds:\n"
            "  page_size: 5\n"
            "  confirm_timeout: 15\n"
            "notifications:\n"
            "  log_channel_id: '42'\n"
            "  owner_id: 9\n"
            "  dm_owner: true\n"
        )

        self.assertEqual(config.admin_users, [1, 2])
        self.assertEqual(config.admin_roles, [3])
        self.assertEqual(config.page_size, 5)
        self.assertEqual(config.confirm_timeout, 15.0)
        self.assertEqual(config.log_channel_id, 42)
        self.assertEqual(config.owner_id, 9)
        self.assertTrue(config.dm_owner_on_guild_events)

    def test_placeholder_token_rejected(self):
        config = self.write("discord:\n  token: YOUR_BOT_TOKEN_HERE\n")
        with self.assertRaises(ValueError):
            config.discord_token

    def test_invalid_page_size(self):
        config = self.write("guilds:\n  page_size: 0\n")
        with self.assertRaises(ValueError):
            config.page_size

    def test_dot_notation(self):
        config = self.write("a:\n  b:\n    c: 1\n")
        self.assertEqual(config.get("a.b.c"), 1)
        self.assertEqual(config.get("a.x.c", "fallback"), "fallback")
        self.assertEqual(config.get("a.b.c.d", "fallback"), "fallback")

    def test_empty_file(self):
        config = self.write("")
        self.assertEqual(config.page_size, 10)


if __name__ == "__main__":
    unittest.main()
