import unittest

from guilddesk.analytics.guild_stats import aggregate, round_half_up, size_bucket
from guilddesk.database.guild_directory import GuildRecord


def make_record(guild_id, member_count, name=None):
    return GuildRecord(id=guild_id, name=name or f"Guild {guild_id}", member_count=member_count)


class TestSizeBucket(unittest.TestCase):

    def test_bucket_boundaries(self):
        self.assertEqual(size_bucket(0), "tiny")
        self.assertEqual(size_bucket(49), "tiny")
        self.assertEqual(size_bucket(50), "small")
        self.assertEqual(size_bucket(249), "small")
        self.assertEqual(size_bucket(250), "medium")
        self.assertEqual(size_bucket(999), "medium")
        self.assertEqual(size_bucket(1000), "large")
        self.assertEqual(size_bucket(250000), "large")


class TestAggregate(unittest.TestCase):

    def test_ties_and_distribution(self):
        first = make_record(1, 1000)
        second = make_record(2, 1000)
        small = make_record(3, 10)

        snapshot = aggregate([first, second, small])

        self.assertEqual(snapshot.total_guilds, 3)
        self.assertEqual(snapshot.total_members, 2010)
        # 2010 / 3 = 670
        self.assertEqual(snapshot.average_members, 670)
        self.assertIs(snapshot.largest, first)
        self.assertIs(snapshot.smallest, small)
        self.assertEqual(
            snapshot.size_distribution,
            {"tiny": 1, "small": 0, "medium": 0, "large": 2}
        )

    def test_smallest_tie_resolves_to_last(self):
        a = make_record(1, 5)
        b = make_record(2, 5)

        snapshot = aggregate([a, b])

        self.assertIs(snapshot.largest, a)
        self.assertIs(snapshot.smallest, b)

    def test_distribution_sums_to_total(self):
        records = [make_record(i, count) for i, count in enumerate([0, 49, 50, 300, 999, 1000, 5000])]

        snapshot = aggregate(records)

        self.assertEqual(sum(snapshot.size_distribution.values()), snapshot.total_guilds)
        self.assertEqual(snapshot.size_distribution["medium"], 2)

    def test_deterministic(self):
        records = [make_record(i, i * 37 % 1200) for i in range(40)]
        self.assertEqual(aggregate(records), aggregate(records))

    def test_empty_collection_rejected(self):
        with self.assertRaises(ValueError):
            aggregate([])

    def test_round_half_up(self):
        self.assertEqual(round_half_up(5, 2), 3)
        self.assertEqual(round_half_up(7, 3), 2)
        self.assertEqual(round_half_up(8, 3), 3)
        self.assertEqual(round_half_up(0, 4), 0)


if __name__ == "__main__":
    unittest.main()
