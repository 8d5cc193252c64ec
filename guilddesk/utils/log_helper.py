"""Utility helpers for posting bot events to the Discord log channel and the owner."""

import logging
from typing import Optional

import discord

from .config import Config

logger = logging.getLogger("guilddesk.log_helper")


class DiscordLogger:
    """Delivers notification embeds to the configured log channel and owner DM."""

    def __init__(self, bot: discord.Client, config: Config):
        self.bot = bot
        self.config = config
        self._logged_missing_channel = False

    async def get_channel(self) -> Optional[discord.abc.Messageable]:
        channel_id = self.config.log_channel_id

        if not channel_id:
            return None

        channel = self.bot.get_channel(channel_id)
        if channel is None:
            try:
                channel = await self.bot.fetch_channel(channel_id)
            except discord.HTTPException as exc:
                logger.warning("Could not fetch log channel %s: %s", channel_id, exc)
                channel = None

        if not isinstance(channel, discord.abc.Messageable):
            # Only log once to avoid spam
            if not self._logged_missing_channel:
                logger.warning("Configured log channel %s not found", channel_id)
                self._logged_missing_channel = True
            return None
        return channel

    async def send(self, embed: discord.Embed) -> int:
        """
        Send an embed to the log channel and, if enabled, to the owner.

        Args:
            embed: Embed to deliver

        Returns:
            Number of successful deliveries
        """
        delivered = 0

        channel = await self.get_channel()
        if channel is not None:
            try:
                await channel.send(embed=embed)
                delivered += 1
            except Exception as exc:
                logger.warning("Failed to send log channel entry: %s", exc)

        if self.config.dm_owner_on_guild_events and self.config.owner_id:
            try:
                owner = self.bot.get_user(self.config.owner_id) or await self.bot.fetch_user(
                    self.config.owner_id
                )
                await owner.send(embed=embed)
                delivered += 1
            except Exception as exc:
                logger.warning("Failed to DM owner %s: %s", self.config.owner_id, exc)

        return delivered
