"""Latency and uptime commands."""

import logging
import os
import platform
from datetime import datetime, timedelta, timezone

import discord
import psutil
from discord import app_commands
from discord.ext import commands

from ..utils import Config


logger = logging.getLogger("guilddesk.commands.status")


def format_timedelta(td: timedelta) -> str:
    """Format timedelta as human-readable string."""
    days = td.days
    hours, remainder = divmod(td.seconds, 3600)
    minutes, seconds = divmod(remainder, 60)

    parts = []
    if days > 0:
        parts.append(f"{days}d")
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    if seconds > 0 or not parts:
        parts.append(f"{seconds}s")

    return " ".join(parts)


class StatusCommand(commands.Cog):
    """Provides /ping and /uptime."""

    def __init__(self, bot: commands.Bot, config: Config):
        self.bot = bot
        self.config = config
        self.start_time = datetime.now(timezone.utc)

    async def _has_permission(self, interaction: discord.Interaction) -> bool:
        if interaction.user.id in self.config.admin_users:
            return True
        if hasattr(interaction.user, 'roles'):
            user_role_ids = {role.id for role in interaction.user.roles}
            if user_role_ids.intersection(self.config.admin_roles):
                return True
        return await self.bot.is_owner(interaction.user)

    @app_commands.command(name="ping", description="Shows the bot's gateway latency")
    async def ping(self, interaction: discord.Interaction):
        latency_ms = round(self.bot.latency * 1000)
        await interaction.response.send_message(f"🏓 Pong! Latency: {latency_ms}ms")

    @app_commands.command(name="uptime", description="[Owner] Shows bot uptime and resource usage")
    async def uptime(self, interaction: discord.Interaction):
        """Display uptime, memory and cache counts."""
        if not await self._has_permission(interaction):
            await interaction.response.send_message(
                "❌ You don't have permission to use this command.",
                ephemeral=True
            )
            return

        uptime = datetime.now(timezone.utc) - self.start_time
        process = psutil.Process(os.getpid())
        memory_mb = process.memory_info().rss / (1024 * 1024)

        embed = discord.Embed(
            title="🤖 GuildDesk Uptime",
            color=discord.Color.green(),
            timestamp=datetime.now(timezone.utc)
        )
        embed.add_field(
            name="⚙️ Process",
            value=(
                f"**Uptime:** {format_timedelta(uptime)}\n"
                f"**Memory:** {memory_mb:.1f} MB"
            ),
            inline=True
        )
        embed.add_field(
            name="📊 Cache",
            value=(
                f"**Guilds:** {len(self.bot.guilds):,}\n"
                f"**Users:** {len(self.bot.users):,}\n"
                f"**Channels:** {sum(1 for _ in self.bot.get_all_channels()):,}"
            ),
            inline=True
        )
        embed.add_field(
            name="🧩 Versions",
            value=(
                f"**Python:** {platform.python_version()}\n"
                f"**discord.py:** {discord.__version__}"
            ),
            inline=True
        )

        await interaction.response.send_message(embed=embed, ephemeral=True)


async def setup(bot: commands.Bot, config: Config):
    """Add status commands to bot."""
    await bot.add_cog(StatusCommand(bot, config))
