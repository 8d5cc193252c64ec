"""
Guild Events - Record and announce the bot joining or leaving servers.
"""

import logging
from typing import Optional

import discord
from discord.ext import commands

from ..database import GuildEventLog, GuildRecord
from ..exporters import DiscordExporter
from ..utils.config import Config
from ..utils.log_helper import DiscordLogger

logger = logging.getLogger("guilddesk.events.guild_events")


class GuildEvents(commands.Cog):
    """Event handlers for guild membership changes."""

    def __init__(
        self,
        bot: commands.Bot,
        config: Config,
        event_log: Optional[GuildEventLog] = None,
        discord_logger: Optional[DiscordLogger] = None
    ):
        self.bot = bot
        self.config = config
        self.event_log = event_log
        self.discord_logger = discord_logger or DiscordLogger(bot=bot, config=config)
        self.exporter = DiscordExporter()

    @commands.Cog.listener()
    async def on_guild_join(self, guild: discord.Guild):
        """Log, persist and announce a new guild."""
        logger.info(
            f"Bot joined new guild: {guild.name} (ID: {guild.id}, members: {guild.member_count})"
        )
        await self._handle(guild, joined=True)

    @commands.Cog.listener()
    async def on_guild_remove(self, guild: discord.Guild):
        """Log, persist and announce a guild the bot is no longer in."""
        logger.info(f"Bot removed from guild: {guild.name} (ID: {guild.id})")
        await self._handle(guild, joined=False)

    async def _handle(self, guild: discord.Guild, joined: bool):
        record = GuildRecord.from_guild(guild)

        if self.event_log is not None:
            try:
                await self.event_log.record(
                    GuildEventLog.JOINED if joined else GuildEventLog.REMOVED,
                    record.id,
                    record.name,
                    member_count=record.member_count
                )
            except Exception as e:
                logger.error(f"Failed to record guild event for {record.id}: {e}", exc_info=True)

        embed = self.exporter.create_guild_event_embed(record, joined, len(self.bot.guilds))
        delivered = await self.discord_logger.send(embed)
        logger.debug(f"Guild event for {record.id} delivered to {delivered} destination(s)")


async def setup(
    bot: commands.Bot,
    config: Config,
    event_log: Optional[GuildEventLog] = None,
    discord_logger: Optional[DiscordLogger] = None
):
    """Add guild event handlers to bot."""
    await bot.add_cog(GuildEvents(bot, config, event_log, discord_logger))
