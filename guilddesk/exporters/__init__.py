"""Export modules for GuildDesk."""

from .discord_exporter import DiscordExporter

__all__ = ["DiscordExporter"]
