"""Operator commands for browsing and managing the bot's guilds."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

import discord
from discord import app_commands
from discord.ext import commands

from ..analytics.guild_stats import aggregate
from ..database import GuildDirectory, GuildEventLog
from ..exporters import DiscordExporter
from ..sessions import SessionRegistry
from ..utils import Config
from .guild_browser import ConfirmationFlow, DetailController, PaginationController


logger = logging.getLogger("guilddesk.commands.guilds")

RECENT_ACTIVITY_WINDOW = timedelta(days=7)
RECENT_EVENTS_SHOWN = 5


def parse_guild_id(raw: Optional[str]) -> Optional[int]:
    """Parse a guild ID typed into a slash command option."""
    raw = (raw or "").strip()
    if not raw.isdigit():
        return None
    return int(raw)


class GuildsCommand(commands.Cog):
    """Cog for the /guilds command group."""

    guilds_group = app_commands.Group(name="guilds", description="[Owner] View and manage the bot's guilds")

    def __init__(
        self,
        bot: commands.Bot,
        config: Config,
        registry: SessionRegistry,
        directory: GuildDirectory,
        event_log: Optional[GuildEventLog] = None
    ):
        """
        Initialize the guilds command group.

        Args:
            bot: Discord bot instance
            config: Configuration object
            registry: Session registry shared by all interactive views
            directory: Guild directory
            event_log: Optional guild event log for recent activity
        """
        self.bot = bot
        self.config = config
        self.registry = registry
        self.directory = directory
        self.event_log = event_log
        self.exporter = DiscordExporter()

        self.confirmations = ConfirmationFlow(
            registry, directory, self.exporter, timeout=config.confirm_timeout
        )
        self.details = DetailController(
            registry,
            directory,
            self.exporter,
            self.confirmations,
            timeout=config.detail_timeout
        )
        self.pages = PaginationController(
            registry,
            directory,
            self.exporter,
            page_size=config.page_size,
            timeout=config.list_timeout
        )

    async def _has_permission(self, interaction: discord.Interaction) -> bool:
        """
        Check if user is a bot operator.

        Args:
            interaction: Discord interaction

        Returns:
            True if user has permission
        """
        if interaction.user.id in self.config.admin_users:
            return True

        if hasattr(interaction.user, 'roles'):
            user_role_ids = [role.id for role in interaction.user.roles]
            for admin_role_id in self.config.admin_roles:
                if admin_role_id in user_role_ids:
                    return True

        return await self.bot.is_owner(interaction.user)

    async def _check_permission(self, interaction: discord.Interaction) -> bool:
        if await self._has_permission(interaction):
            return True

        logger.info(f"Denied /guilds for {interaction.user} ({interaction.user.id})")
        await interaction.response.send_message(
            "❌ You don't have permission to use this command.",
            ephemeral=True
        )
        return False

    async def _send_invalid_id(self, interaction: discord.Interaction, usage: str):
        await interaction.response.send_message(
            embed=self.exporter.create_notice(
                "Invalid Guild ID",
                f"Please provide a numeric guild ID.\n\n**Usage:** `{usage}`"
            ),
            ephemeral=True
        )

    async def _send_command_error(self, interaction: discord.Interaction):
        embed = self.exporter.create_error(
            "Command Error",
            "An error occurred while executing this command."
        )
        try:
            if interaction.response.is_done():
                await interaction.followup.send(embed=embed, ephemeral=True)
            else:
                await interaction.response.send_message(embed=embed, ephemeral=True)
        except discord.HTTPException as e:
            logger.warning(f"Could not send error notice: {e}")

    @guilds_group.command(name="list", description="[Owner] Browse all guilds the bot is in")
    async def list_guilds(self, interaction: discord.Interaction):
        """Open the paginated guild list."""
        if not await self._check_permission(interaction):
            return

        try:
            await self.pages.start(interaction)
        except Exception as e:
            logger.error(f"Error in /guilds list: {e}", exc_info=True)
            await self._send_command_error(interaction)

    @guilds_group.command(name="info", description="[Owner] Show detailed information about a guild")
    @app_commands.describe(guild_id="ID of the guild")
    async def info(self, interaction: discord.Interaction, guild_id: str):
        """Open the detail view of one guild."""
        if not await self._check_permission(interaction):
            return

        parsed = parse_guild_id(guild_id)
        if parsed is None:
            await self._send_invalid_id(interaction, "/guilds info <guild_id>")
            return

        try:
            await self.details.start(interaction, parsed)
        except Exception as e:
            logger.error(f"Error in /guilds info: {e}", exc_info=True)
            await self._send_command_error(interaction)

    @guilds_group.command(name="leave", description="[Owner] Make the bot leave a guild")
    @app_commands.describe(guild_id="ID of the guild to leave")
    async def leave(self, interaction: discord.Interaction, guild_id: str):
        """Ask for confirmation, then leave a guild."""
        if not await self._check_permission(interaction):
            return

        parsed = parse_guild_id(guild_id)
        if parsed is None:
            await self._send_invalid_id(interaction, "/guilds leave <guild_id>")
            return

        try:
            await self.details.start(interaction, parsed, request_leave=True)
        except Exception as e:
            logger.error(f"Error in /guilds leave: {e}", exc_info=True)
            await self._send_command_error(interaction)

    @guilds_group.command(name="stats", description="[Owner] Show statistics across all guilds")
    async def stats(self, interaction: discord.Interaction):
        """Show aggregate guild statistics."""
        if not await self._check_permission(interaction):
            return

        try:
            collection = await self.directory.fetch_collection()
            if not collection:
                await interaction.response.send_message(
                    embed=self.exporter.create_no_guilds(),
                    ephemeral=True
                )
                return

            snapshot = aggregate(collection)
            joins, removals, events = await self._recent_activity()
            await interaction.response.send_message(
                embed=self.exporter.create_stats_embed(snapshot, joins, removals, events),
                ephemeral=True
            )
        except Exception as e:
            logger.error(f"Error in /guilds stats: {e}", exc_info=True)
            await self._send_command_error(interaction)

    async def _recent_activity(
        self
    ) -> Tuple[Optional[int], Optional[int], List[Dict[str, Any]]]:
        """Count recent joins and removals and fetch the latest guild events."""
        if self.event_log is None:
            return None, None, []

        since = datetime.now(timezone.utc) - RECENT_ACTIVITY_WINDOW
        try:
            joins = await self.event_log.count_since(GuildEventLog.JOINED, since)
            removals = await self.event_log.count_since(GuildEventLog.REMOVED, since)
            events = await self.event_log.recent(limit=RECENT_EVENTS_SHOWN)
        except Exception as e:
            logger.warning(f"Could not read guild event log: {e}")
            return None, None, []
        return joins, removals, events


async def setup(
    bot: commands.Bot,
    config: Config,
    registry: SessionRegistry,
    directory: GuildDirectory,
    event_log: Optional[GuildEventLog] = None
):
    """Add guilds command group to bot."""
    await bot.add_cog(GuildsCommand(bot, config, registry, directory, event_log))
