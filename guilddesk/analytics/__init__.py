"""Analytics modules for GuildDesk."""

from .pager import clamp_page, slice_page, total_pages
from .guild_stats import StatsSnapshot, aggregate, size_bucket

__all__ = [
    "clamp_page",
    "slice_page",
    "total_pages",
    "StatsSnapshot",
    "aggregate",
    "size_bucket",
]
