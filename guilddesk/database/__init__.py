"""Database and directory modules for GuildDesk."""

from .guild_log import GuildEventLog
from .guild_directory import (
    GuildDirectory,
    GuildDirectoryError,
    GuildNotFoundError,
    GuildRecord,
    InviteUnavailableError,
    sort_by_members,
)

__all__ = [
    "GuildEventLog",
    "GuildDirectory",
    "GuildDirectoryError",
    "GuildNotFoundError",
    "GuildRecord",
    "InviteUnavailableError",
    "sort_by_members",
]
