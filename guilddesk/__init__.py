"""GuildDesk - guild management commands for Discord bot operators."""

__version__ = "1.0.0"
