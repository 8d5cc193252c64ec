import unittest

from guilddesk.database.guild_directory import GuildRecord
from guilddesk.sessions.detail import (
    DetailAction,
    DetailEffect,
    DetailSession,
    parse_custom_id,
    transition,
)


class TestDetailSession(unittest.TestCase):

    def setUp(self):
        self.record = GuildRecord(id=123456789, name="Test Guild", member_count=42)
        self.session = DetailSession.open(7, self.record, timeout=300, now=0.0)

    def test_leave_opens_one_confirmation(self):
        state, effects = transition(self.session, DetailAction.LEAVE)
        self.assertTrue(state.confirming)
        self.assertEqual(effects, [DetailEffect.OPEN_CONFIRMATION])

        state, effects = transition(state, DetailAction.LEAVE)
        self.assertEqual(effects, [])

    def test_invite(self):
        state, effects = transition(self.session, DetailAction.INVITE, now=50.0)
        self.assertEqual(effects, [DetailEffect.CREATE_INVITE])
        self.assertEqual(state.expires_at, 350.0)
        self.assertFalse(state.confirming)

    def test_timeout_clears_controls(self):
        state, effects = transition(self.session, DetailAction.TIMEOUT)
        self.assertTrue(state.closed)
        self.assertEqual(effects, [DetailEffect.CLEAR_CONTROLS])

    def test_timeout_while_confirming_leaves_controls_alone(self):
        state, _ = transition(self.session, DetailAction.LEAVE)
        state, effects = transition(state, DetailAction.TIMEOUT)
        self.assertTrue(state.closed)
        self.assertEqual(effects, [])

    def test_closed_session_ignores_events(self):
        state, _ = transition(self.session, DetailAction.TIMEOUT)
        _, effects = transition(state, DetailAction.INVITE)
        self.assertEqual(effects, [])

    def test_parse_custom_id(self):
        self.assertEqual(parse_custom_id("leave_guild_123"), (DetailAction.LEAVE, 123))
        self.assertEqual(parse_custom_id("guild_invite_9"), (DetailAction.INVITE, 9))
        self.assertIsNone(parse_custom_id("leave_guild_abc"))
        self.assertIsNone(parse_custom_id("guild_next"))
        self.assertIsNone(parse_custom_id(""))


if __name__ == "__main__":
    unittest.main()
