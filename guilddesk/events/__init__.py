"""Event handlers for GuildDesk."""

from .guild_events import GuildEvents

__all__ = ["GuildEvents"]
