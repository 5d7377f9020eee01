"""
Tests for staleness evaluation.
"""

import pytest

from tunasync_monitor.domain.status import StatusRecord, StalenessResult
from tunasync_monitor.staleness import (
    SECONDS_PER_DAY,
    days_since,
    find_stale_repos,
    is_stale,
)

NOW = 1_600_000_000


def make_record(name, last_update_ts, status="success"):
    return StatusRecord(
        name=name,
        is_master=True,
        status=status,
        last_update="",
        last_update_ts=last_update_ts,
        last_ended="",
        last_ended_ts=last_update_ts,
        upstream=f"rsync://example.org/{name}/",
        size="1GiB",
    )


class TestFindStaleRepos:
    """Tests for find_stale_repos()."""

    def test_failed_repo_flagged_never_updated_ignored(self):
        """ubuntu is a day stale, debian never synced."""
        records = [
            make_record("ubuntu", NOW - 100000, status="failed"),
            make_record("debian", 0),
        ]
        result = find_stale_repos(records, expire_days=1, now=NOW)
        assert result == [StalenessResult("ubuntu", 1)]

    @pytest.mark.parametrize("expire_days", [0, 1, 7, 365])
    def test_never_updated_is_never_stale(self, expire_days):
        records = [make_record("debian", 0, status="failed")]
        assert find_stale_repos(records, expire_days, NOW) == []
        assert find_stale_repos(records, expire_days, NOW, failed_only=True) == []

    def test_exact_threshold_is_not_stale(self):
        records = [make_record("arch", NOW - 7 * SECONDS_PER_DAY)]
        assert find_stale_repos(records, 7, NOW) == []

    def test_one_second_past_threshold_is_stale(self):
        records = [make_record("arch", NOW - 7 * SECONDS_PER_DAY - 1)]
        assert find_stale_repos(records, 7, NOW) == [StalenessResult("arch", 7)]

    def test_days_ago_truncates(self):
        records = [make_record("centos", NOW - (10 * SECONDS_PER_DAY + SECONDS_PER_DAY - 1))]
        result = find_stale_repos(records, 1, NOW)
        assert result[0].days_ago == 10

    def test_preserves_input_order(self):
        records = [
            make_record("b", NOW - 20 * SECONDS_PER_DAY),
            make_record("a", NOW - 30 * SECONDS_PER_DAY),
            make_record("c", NOW - 10 * SECONDS_PER_DAY),
        ]
        names = [r.name for r in find_stale_repos(records, 1, NOW)]
        assert names == ["b", "a", "c"]

    def test_duplicates_are_not_merged(self):
        records = [make_record("pypi", NOW - 9 * SECONDS_PER_DAY)] * 2
        assert len(find_stale_repos(records, 1, NOW)) == 2

    def test_failed_only_ignores_other_statuses(self):
        records = [
            make_record("ubuntu", NOW - 9 * SECONDS_PER_DAY, status="failed"),
            make_record("fedora", NOW - 9 * SECONDS_PER_DAY, status="success"),
            make_record("gentoo", NOW - 9 * SECONDS_PER_DAY, status="syncing"),
        ]
        assert [r.name for r in find_stale_repos(records, 7, NOW)] == ["ubuntu", "fedora", "gentoo"]
        assert [r.name for r in find_stale_repos(records, 7, NOW, failed_only=True)] == ["ubuntu"]

    def test_failed_status_is_case_sensitive(self):
        records = [make_record("ubuntu", NOW - 9 * SECONDS_PER_DAY, status="Failed")]
        assert find_stale_repos(records, 7, NOW, failed_only=True) == []

    def test_lower_threshold_never_flags_fewer(self):
        records = [
            make_record(f"repo{i}", NOW - i * 40000) for i in range(0, 40)
        ]
        counts = [len(find_stale_repos(records, days, NOW)) for days in range(0, 20)]
        assert counts == sorted(counts, reverse=True)


class TestHelpers:

    def test_days_since(self):
        assert days_since(NOW - 3 * SECONDS_PER_DAY, NOW) == 3
        assert days_since(NOW, NOW) == 0

    def test_is_stale(self):
        assert is_stale(make_record("x", NOW - 2 * SECONDS_PER_DAY), 1, NOW)
        assert not is_stale(make_record("x", NOW), 0, NOW)
