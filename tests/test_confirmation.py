import unittest

from guilddesk.sessions.confirmation import (
    ConfirmationAction,
    ConfirmationEffect,
    ConfirmationOutcome,
    ConfirmationSession,
    transition,
)


class TestConfirmationSession(unittest.TestCase):

    def setUp(self):
        self.session = ConfirmationSession.open(7, 555, timeout=30, now=10.0)

    def test_open(self):
        self.assertEqual(self.session.state, "pending")
        self.assertEqual(self.session.expires_at, 40.0)
        self.assertIsNone(self.session.outcome)

    def test_confirm_leaves(self):
        state, effects = transition(self.session, ConfirmationAction.CONFIRM)
        self.assertEqual(effects, [ConfirmationEffect.LEAVE_GUILD])
        self.assertEqual(state.outcome, ConfirmationOutcome.CONFIRMED)
        self.assertEqual(state.state, "resolved")

    def test_cancel(self):
        state, effects = transition(self.session, ConfirmationAction.CANCEL)
        self.assertEqual(effects, [ConfirmationEffect.SHOW_CANCELLED])
        self.assertEqual(state.outcome, ConfirmationOutcome.CANCELLED)

    def test_timeout_clears_controls_only(self):
        state, effects = transition(self.session, ConfirmationAction.TIMEOUT)
        self.assertEqual(effects, [ConfirmationEffect.CLEAR_CONTROLS])
        self.assertEqual(state.outcome, ConfirmationOutcome.EXPIRED)

    def test_double_confirm_leaves_once(self):
        state, first = transition(self.session, ConfirmationAction.CONFIRM)
        state, second = transition(state, ConfirmationAction.CONFIRM)

        self.assertEqual(first, [ConfirmationEffect.LEAVE_GUILD])
        self.assertEqual(second, [])
        self.assertEqual(state.outcome, ConfirmationOutcome.CONFIRMED)

    def test_events_after_resolution_are_stale(self):
        for resolving in ConfirmationAction:
            resolved, _ = transition(self.session, resolving)
            for action in ConfirmationAction:
                state, effects = transition(resolved, action)
                self.assertIs(state, resolved)
                self.assertEqual(effects, [])


if __name__ == "__main__":
    unittest.main()
