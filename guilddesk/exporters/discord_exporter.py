"""Discord embeds for the guild management views."""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Sequence

import discord

from ..analytics.guild_stats import StatsSnapshot
from ..database.guild_directory import GuildRecord
from ..sessions.pagination import PaginationSession


logger = logging.getLogger("guilddesk.discord_exporter")

LIST_COLOR = discord.Color(0x4169E1)
STATS_COLOR = discord.Color(0x00FF7F)
WARNING_COLOR = discord.Color(0xFFA500)
CANCELLED_COLOR = discord.Color(0x808080)
REMOVED_COLOR = discord.Color(0xFF6B6B)

EVENT_LABELS = {
    "joined": "📥 Joined",
    "removed": "📤 Removed",
    "left_by_operator": "🚪 Left",
}

VERIFICATION_LEVELS = {
    0: "None",
    1: "Low",
    2: "Medium",
    3: "High",
    4: "Very High",
}


def format_date(value: Optional[datetime]) -> str:
    """Render a date like ``Mon Jan 01 2024``."""
    if value is None:
        return "Unknown"
    return value.strftime("%a %b %d %Y")


def verification_label(level: int) -> str:
    return VERIFICATION_LEVELS.get(level, "Unknown")


class DiscordExporter:
    """Builds the embeds shown by the /guilds views."""

    def create_notice(
        self,
        title: str,
        description: str,
        color: discord.Color = WARNING_COLOR
    ) -> discord.Embed:
        return discord.Embed(title=title, description=description, color=color)

    def create_error(self, title: str, description: str) -> discord.Embed:
        return discord.Embed(
            title=f"❌ {title}",
            description=description,
            color=discord.Color.red()
        )

    def create_success(self, title: str, description: str) -> discord.Embed:
        return discord.Embed(
            title=f"✅ {title}",
            description=description,
            color=discord.Color.green()
        )

    def create_no_guilds(self) -> discord.Embed:
        return self.create_notice("No Guilds", "Bot is not in any guilds.")

    def create_list_embed(self, session: PaginationSession) -> discord.Embed:
        """
        Create the embed for the current page of a guild list session.

        Args:
            session: List session to render

        Returns:
            Discord Embed object
        """
        if session.is_empty:
            return self.create_no_guilds()

        lines = []
        for position, record in enumerate(session.page_items(), start=session.page_offset + 1):
            lines.append(
                f"**{position}.** {record.name}\n"
                f"└ ID: `{record.id}`\n"
                f"└ Members: {record.member_count:,}\n"
                f"└ Owner: {record.owner_name or 'Unknown'}\n"
                f"└ Created: {format_date(record.created_at)}"
            )

        total_members = sum(record.member_count for record in session.collection)

        embed = discord.Embed(
            title=f"Guild List ({len(session.collection)} servers)",
            description="\n\n".join(lines),
            color=LIST_COLOR
        )
        embed.set_footer(
            text=(
                f"Page {session.current_page + 1} of {session.total_pages} • "
                f"Total Members: {total_members:,}"
            )
        )
        return embed

    def create_detail_embed(self, record: GuildRecord) -> discord.Embed:
        """Create the detail embed for one guild."""
        embed = discord.Embed(
            title=f"Guild Information: {record.name}",
            description=record.description or None,
            color=LIST_COLOR,
            timestamp=datetime.now(timezone.utc)
        )
        if record.icon_url:
            embed.set_thumbnail(url=record.icon_url)

        embed.add_field(
            name="Basic Info",
            value=(
                f"**Name:** {record.name}\n"
                f"**ID:** `{record.id}`\n"
                f"**Created:** {format_date(record.created_at)}\n"
                f"**Joined:** {format_date(record.joined_at)}"
            ),
            inline=True
        )
        embed.add_field(
            name="Statistics",
            value=(
                f"**Members:** {record.member_count:,}\n"
                f"**Channels:** {record.channel_count}\n"
                f"**Roles:** {record.role_count}\n"
                f"**Emojis:** {record.emoji_count}"
            ),
            inline=True
        )

        owner = (
            f"{record.owner_name} ({record.owner_id})" if record.owner_name else "Unknown"
        )
        embed.add_field(
            name="Server Details",
            value=(
                f"**Owner:** {owner}\n"
                f"**Verification:** {verification_label(record.verification_level)}\n"
                f"**Boost Level:** {record.premium_tier}\n"
                f"**Boosts:** {record.premium_subscription_count}"
            ),
            inline=False
        )
        embed.add_field(
            name="Channel Breakdown",
            value=(
                f"**Text:** {record.text_channels}\n"
                f"**Voice:** {record.voice_channels}\n"
                f"**Categories:** {record.categories}\n"
                f"**Threads:** {record.threads}"
            ),
            inline=True
        )

        features = ", ".join(
            feature.replace("_", " ").lower() for feature in record.features
        )
        embed.add_field(name="Features", value=features or "None", inline=False)
        return embed

    def create_stats_embed(
        self,
        snapshot: StatsSnapshot,
        recent_joins: Optional[int] = None,
        recent_removals: Optional[int] = None,
        recent_events: Optional[Sequence[Dict[str, Any]]] = None
    ) -> discord.Embed:
        """
        Create the statistics embed.

        Args:
            snapshot: Aggregated statistics
            recent_joins: Guilds joined in the last 7 days, if known
            recent_removals: Guilds left in the last 7 days, if known
            recent_events: Latest guild event log rows, newest first
        """
        embed = discord.Embed(
            title="Bot Guild Statistics",
            color=STATS_COLOR,
            timestamp=datetime.now(timezone.utc)
        )
        embed.add_field(
            name="Overview",
            value=(
                f"**Total Guilds:** {snapshot.total_guilds:,}\n"
                f"**Total Members:** {snapshot.total_members:,}\n"
                f"**Average Members:** {snapshot.average_members:,}"
            ),
            inline=True
        )
        embed.add_field(
            name="Extremes",
            value=(
                f"**Largest:** {snapshot.largest.name} ({snapshot.largest.member_count:,})\n"
                f"**Smallest:** {snapshot.smallest.name} ({snapshot.smallest.member_count:,})"
            ),
            inline=True
        )

        distribution = snapshot.size_distribution
        embed.add_field(
            name="Size Distribution",
            value=(
                f"**Tiny (<50):** {distribution['tiny']}\n"
                f"**Small (50-249):** {distribution['small']}\n"
                f"**Medium (250-999):** {distribution['medium']}\n"
                f"**Large (1000+):** {distribution['large']}"
            ),
            inline=False
        )

        if recent_joins is not None and recent_removals is not None:
            embed.add_field(
                name="Last 7 Days",
                value=f"**Joined:** {recent_joins}\n**Removed:** {recent_removals}",
                inline=False
            )

        if recent_events:
            embed.add_field(
                name="Recent Activity",
                value="\n".join(self._format_event(row) for row in recent_events),
                inline=False
            )
        return embed

    @staticmethod
    def _format_event(row: Dict[str, Any]) -> str:
        label = EVENT_LABELS.get(row["event"], row["event"])
        when = discord.utils.format_dt(datetime.fromisoformat(row["created_at"]), "R")
        return f"{label} **{row['guild_name']}** (`{row['guild_id']}`) {when}"

    def create_confirm_embed(self, record: GuildRecord) -> discord.Embed:
        return self.create_notice(
            "Confirm Guild Leave",
            f"Are you sure you want to leave **{record.name}**?\n\n"
            f"**Members:** {record.member_count:,}\n"
            f"**ID:** `{record.id}`\n\n"
            "This action cannot be undone."
        )

    def create_left_embed(self, record: GuildRecord) -> discord.Embed:
        return self.create_success(
            "Left Guild",
            f"Successfully left **{record.name}** ({record.id})"
        )

    def create_leave_failed_embed(self) -> discord.Embed:
        return self.create_error(
            "Failed to Leave",
            "An error occurred while leaving the guild."
        )

    def create_cancelled_embed(self) -> discord.Embed:
        return self.create_notice("Cancelled", "Guild leave cancelled.", CANCELLED_COLOR)

    def create_guild_event_embed(
        self,
        record: GuildRecord,
        joined: bool,
        total_guilds: int
    ) -> discord.Embed:
        """Create the log channel notification for a guild join or removal."""
        embed = discord.Embed(
            title="📈 Guild Added" if joined else "📉 Guild Removed",
            color=STATS_COLOR if joined else REMOVED_COLOR,
            timestamp=datetime.now(timezone.utc)
        )
        embed.add_field(name="Guild Name", value=record.name, inline=True)
        embed.add_field(name="Guild ID", value=str(record.id), inline=True)
        embed.add_field(
            name="Members",
            value=str(record.member_count) if record.member_count else "Unknown",
            inline=True
        )
        embed.add_field(
            name="Owner",
            value=f"<@{record.owner_id}>" if record.owner_id else "Unknown",
            inline=True
        )
        embed.add_field(name="Created", value=format_date(record.created_at), inline=True)
        embed.add_field(name="Total Guilds", value=str(total_guilds), inline=True)
        return embed
