"""Read-only guild snapshots plus the leave/invite actions operators can take."""

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Iterable, Optional, Tuple

import discord

from .guild_log import GuildEventLog


logger = logging.getLogger("guilddesk.guild_directory")


class GuildDirectoryError(Exception):
    """Base error for guild directory actions."""


class GuildNotFoundError(GuildDirectoryError):
    """The bot is not (or no longer) a member of the requested guild."""

    def __init__(self, guild_id: int):
        super().__init__(f"No guild found with ID: {guild_id}")
        self.guild_id = guild_id


class InviteUnavailableError(GuildDirectoryError):
    """No channel in the guild allows the bot to create an invite."""


@dataclass(frozen=True)
class GuildRecord:
    """Immutable snapshot of a guild as seen by the bot."""

    id: int
    name: str
    member_count: int
    owner_id: Optional[int] = None
    owner_name: Optional[str] = None
    created_at: Optional[datetime] = None
    joined_at: Optional[datetime] = None
    icon_url: Optional[str] = None
    description: Optional[str] = None
    text_channels: int = 0
    voice_channels: int = 0
    categories: int = 0
    threads: int = 0
    channel_count: int = 0
    role_count: int = 0
    emoji_count: int = 0
    verification_level: int = 0
    premium_tier: int = 0
    premium_subscription_count: int = 0
    features: Tuple[str, ...] = ()

    @classmethod
    def from_guild(cls, guild: discord.Guild) -> "GuildRecord":
        """Build a record from a cached discord.py guild."""
        owner = guild.owner
        me = guild.me
        return cls(
            id=guild.id,
            name=guild.name,
            member_count=guild.member_count or 0,
            owner_id=guild.owner_id,
            owner_name=owner.name if owner else None,
            created_at=guild.created_at,
            joined_at=me.joined_at if me else None,
            icon_url=guild.icon.url if guild.icon else None,
            description=guild.description,
            text_channels=len(guild.text_channels),
            voice_channels=len(guild.voice_channels),
            categories=len(guild.categories),
            threads=len(guild.threads),
            channel_count=len(guild.channels),
            role_count=len(guild.roles),
            emoji_count=len(guild.emojis),
            verification_level=guild.verification_level.value,
            premium_tier=guild.premium_tier,
            premium_subscription_count=guild.premium_subscription_count or 0,
            features=tuple(guild.features),
        )


def sort_by_members(records: Iterable[GuildRecord]) -> Tuple[GuildRecord, ...]:
    """Order records by member count, largest first. Equal counts keep their order."""
    return tuple(sorted(records, key=lambda record: record.member_count, reverse=True))


class GuildDirectory:
    """Access to the guilds the bot is a member of."""

    def __init__(self, bot: discord.Client, event_log: Optional[GuildEventLog] = None):
        """
        Initialize the guild directory.

        Args:
            bot: Discord client whose guild cache is read
            event_log: Optional log receiving operator-initiated leaves
        """
        self.bot = bot
        self.event_log = event_log

    def _get_guild(self, guild_id: int) -> discord.Guild:
        guild = self.bot.get_guild(guild_id)
        if guild is None:
            raise GuildNotFoundError(guild_id)
        return guild

    async def fetch_collection(self) -> Tuple[GuildRecord, ...]:
        """Snapshot every cached guild, sorted by member count descending."""
        return sort_by_members(GuildRecord.from_guild(guild) for guild in self.bot.guilds)

    async def fetch_record(self, guild_id: int) -> GuildRecord:
        """
        Snapshot one guild, resolving its owner if it is not cached.

        Raises:
            GuildNotFoundError: the bot is not in this guild
        """
        guild = self._get_guild(guild_id)
        record = GuildRecord.from_guild(guild)

        if record.owner_name is None and guild.owner_id:
            try:
                owner = await guild.fetch_member(guild.owner_id)
            except discord.HTTPException as exc:
                logger.debug(f"Could not fetch owner of guild {guild_id}: {exc}")
            else:
                record = replace(record, owner_name=owner.name)

        return record

    async def leave(self, guild_id: int, actor_id: Optional[int] = None) -> GuildRecord:
        """
        Leave a guild. Not retried on failure.

        Args:
            guild_id: Guild to leave
            actor_id: Operator requesting the leave

        Returns:
            Snapshot of the guild taken right before leaving

        Raises:
            GuildNotFoundError: the bot is not in this guild
            discord.HTTPException: Discord rejected the request
        """
        guild = self._get_guild(guild_id)
        record = GuildRecord.from_guild(guild)

        await guild.leave()
        logger.info(f"Left guild {record.name} ({record.id}) on request of {actor_id}")

        if self.event_log is not None:
            try:
                await self.event_log.record(
                    GuildEventLog.LEFT_BY_OPERATOR,
                    record.id,
                    record.name,
                    member_count=record.member_count,
                    actor_id=actor_id
                )
            except Exception as exc:
                logger.error(f"Failed to record leave of guild {record.id}: {exc}", exc_info=True)

        return record

    async def create_invite(self, guild_id: int) -> str:
        """
        Create a permanent invite to the first channel that allows it.

        Returns:
            Invite URL

        Raises:
            GuildNotFoundError: the bot is not in this guild
            InviteUnavailableError: no suitable channel exists
            discord.HTTPException: Discord rejected the request
        """
        guild = self._get_guild(guild_id)
        me = guild.me

        channel = next(
            (
                ch for ch in guild.text_channels
                if me is not None and ch.permissions_for(me).create_instant_invite
            ),
            None
        )
        if channel is None:
            raise InviteUnavailableError(
                f"Cannot create invite for guild {guild_id} - no suitable channel found."
            )

        invite = await channel.create_invite(
            max_age=0,
            max_uses=0,
            reason="Created by bot owner"
        )
        logger.info(f"Created invite for guild {guild.name} ({guild.id}) in #{channel.name}")
        return invite.url
