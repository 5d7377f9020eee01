"""
Staleness evaluation for mirror status records.

Pure functions: the caller supplies the current time, so a run reads the
clock once per server and tests can pin it.
"""

from typing import Iterable, List

from .domain.status import StatusRecord, StalenessResult

SECONDS_PER_DAY = 60 * 60 * 24


def days_since(ts: int, now: int) -> int:
    """Whole days elapsed between ts and now (epoch seconds)."""
    return (now - ts) // SECONDS_PER_DAY


def is_stale(record: StatusRecord, expire_days: int, now: int,
             failed_only: bool = False) -> bool:
    """
    Check whether a record is out of sync.

    Records that never synced (last_update_ts == 0) are never stale.
    With failed_only, only records whose status is "failed" qualify.
    """
    if failed_only and not record.is_failed:
        return False
    if record.last_update_ts <= 0:
        return False
    return now - record.last_update_ts > expire_days * SECONDS_PER_DAY


def find_stale_repos(
    records: Iterable[StatusRecord],
    expire_days: int,
    now: int,
    failed_only: bool = False,
) -> List[StalenessResult]:
    """
    Collect the repositories whose last successful update is too old.

    Args:
        records: Status records of one server
        expire_days: Threshold in whole days
        now: Current time in epoch seconds
        failed_only: Only consider records whose status is "failed"

    Returns:
        One StalenessResult per stale record, in input order
    """
    return [
        StalenessResult(record.name, days_since(record.last_update_ts, now))
        for record in records
        if is_stale(record, expire_days, now, failed_only)
    ]
