import unittest
from unittest.mock import AsyncMock, MagicMock

import discord

from guilddesk.database.guild_log import GuildEventLog
from guilddesk.events.guild_events import GuildEvents
from guilddesk.utils.log_helper import DiscordLogger


def make_guild():
    guild = MagicMock()
    guild.id = 321
    guild.name = "Joined Guild"
    guild.member_count = 77
    guild.owner_id = 9
    guild.created_at = None
    guild.icon = None
    guild.verification_level = discord.VerificationLevel.low
    guild.premium_tier = 0
    guild.premium_subscription_count = 0
    guild.features = []
    return guild


def make_config(log_channel_id=None, owner_id=None, dm_owner=False):
    config = MagicMock()
    config.log_channel_id = log_channel_id
    config.owner_id = owner_id
    config.dm_owner_on_guild_events = dm_owner
    return config


class TestGuildEvents(unittest.IsolatedAsyncioTestCase):

    async def asyncSetUp(self):
        self.bot = MagicMock()
        self.bot.guilds = [MagicMock(), MagicMock()]
        self.event_log = MagicMock()
        self.event_log.record = AsyncMock()
        self.notifier = MagicMock()
        self.notifier.send = AsyncMock(return_value=1)
        self.cog = GuildEvents(self.bot, make_config(), self.event_log, self.notifier)

    async def test_join_is_recorded_and_announced(self):
        await self.cog.on_guild_join(make_guild())

        self.event_log.record.assert_awaited_once_with(
            GuildEventLog.JOINED, 321, "Joined Guild", member_count=77
        )
        embed = self.notifier.send.call_args.args[0]
        self.assertEqual(embed.title, "📈 Guild Added")
        fields = {field.name: field.value for field in embed.fields}
        self.assertEqual(fields["Total Guilds"], "2")
        self.assertEqual(fields["Owner"], "<@9>")

    async def test_remove_is_announced_even_if_log_fails(self):
        self.event_log.record.side_effect = RuntimeError("db locked")

        with self.assertLogs("guilddesk.events.guild_events", level="ERROR"):
            await self.cog.on_guild_remove(make_guild())

        embed = self.notifier.send.call_args.args[0]
        self.assertEqual(embed.title, "📉 Guild Removed")


class TestDiscordLogger(unittest.IsolatedAsyncioTestCase):

    async def test_sends_to_channel_and_owner(self):
        channel = MagicMock(spec=discord.TextChannel)
        owner = MagicMock()
        owner.send = AsyncMock()
        bot = MagicMock()
        bot.get_channel.return_value = channel
        bot.get_user.return_value = owner
        notifier = DiscordLogger(bot, make_config(log_channel_id=5, owner_id=9, dm_owner=True))
        embed = discord.Embed(title="x")

        delivered = await notifier.send(embed)

        self.assertEqual(delivered, 2)
        channel.send.assert_awaited_once_with(embed=embed)
        owner.send.assert_awaited_once_with(embed=embed)

    async def test_delivery_failures_are_swallowed(self):
        channel = MagicMock(spec=discord.TextChannel)
        channel.send.side_effect = RuntimeError("missing access")
        bot = MagicMock()
        bot.get_channel.return_value = channel
        notifier = DiscordLogger(bot, make_config(log_channel_id=5))

        with self.assertLogs("guilddesk.log_helper", level="WARNING"):
            delivered = await notifier.send(discord.Embed(title="x"))

        self.assertEqual(delivered, 0)

    async def test_no_channel_configured(self):
        notifier = DiscordLogger(MagicMock(), make_config())
        self.assertIsNone(await notifier.get_channel())
        self.assertEqual(await notifier.send(discord.Embed(title="x")), 0)


if __name__ == "__main__":
    unittest.main()
