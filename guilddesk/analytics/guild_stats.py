"""Aggregate statistics over the bot's guilds."""

import logging
from dataclasses import dataclass
from typing import Dict, Sequence

from ..database.guild_directory import GuildRecord


logger = logging.getLogger("guilddesk.guild_stats")


# Half-open member count ranges: (bucket, lower bound inclusive, upper bound exclusive)
SIZE_BUCKETS = (
    ("tiny", 0, 50),
    ("small", 50, 250),
    ("medium", 250, 1000),
    ("large", 1000, None),
)


@dataclass(frozen=True)
class StatsSnapshot:
    """Statistics derived from one guild collection."""

    total_guilds: int
    total_members: int
    average_members: int
    largest: GuildRecord
    smallest: GuildRecord
    size_distribution: Dict[str, int]


def size_bucket(member_count: int) -> str:
    """Name of the size bucket a member count falls into."""
    for name, lower, upper in SIZE_BUCKETS:
        if member_count >= lower and (upper is None or member_count < upper):
            return name
    # Negative counts never come from Discord; treat them as the smallest bucket
    return SIZE_BUCKETS[0][0]


def round_half_up(numerator: int, denominator: int) -> int:
    """Integer division rounded to the nearest integer, halves rounded up."""
    return (2 * numerator + denominator) // (2 * denominator)


def aggregate(collection: Sequence[GuildRecord]) -> StatsSnapshot:
    """
    Compute statistics for a guild collection.

    Ties for the largest guild resolve to the first one in collection order,
    ties for the smallest guild to the last one.

    Args:
        collection: Guild records, usually sorted by member count descending

    Returns:
        StatsSnapshot

    Raises:
        ValueError: the collection is empty
    """
    if not collection:
        raise ValueError("Cannot aggregate statistics over an empty guild collection")

    total_members = 0
    largest = collection[0]
    smallest = collection[0]
    distribution = {name: 0 for name, _, _ in SIZE_BUCKETS}

    for record in collection:
        total_members += record.member_count
        if record.member_count > largest.member_count:
            largest = record
        if record.member_count <= smallest.member_count:
            smallest = record
        distribution[size_bucket(record.member_count)] += 1

    snapshot = StatsSnapshot(
        total_guilds=len(collection),
        total_members=total_members,
        average_members=round_half_up(total_members, len(collection)),
        largest=largest,
        smallest=smallest,
        size_distribution=distribution,
    )
    logger.debug(
        f"Aggregated {snapshot.total_guilds} guilds with {snapshot.total_members} members"
    )
    return snapshot
