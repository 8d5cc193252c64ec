"""Command modules for GuildDesk."""

from .guild_browser import (
    ConfirmationFlow,
    DetailController,
    GuildDetailView,
    GuildListView,
    LeaveConfirmView,
    PaginationController,
)
from .guilds import GuildsCommand
from .status import StatusCommand

__all__ = [
    "ConfirmationFlow",
    "DetailController",
    "GuildDetailView",
    "GuildListView",
    "LeaveConfirmView",
    "PaginationController",
    "GuildsCommand",
    "StatusCommand",
]
