"""Daily scan streak calculation."""

from dataclasses import dataclass, replace
from datetime import UTC, date, datetime

from gleam_backend.domain.aggregates import UserAggregate
from gleam_backend.domain.streaks import StreakState


def scan_day(timestamp: datetime) -> date:
    """Return the UTC calendar day of a timestamp. Naive values are UTC."""
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=UTC)
    return timestamp.astimezone(UTC).date()


def compute_streak(previous: StreakState, scan_at: datetime) -> StreakState:
    """Return the streak after a scan at `scan_at`."""
    day = scan_day(scan_at)
    last_day = day
    if previous.last_scan_day is None:
        current = 1
    else:
        diff_days = (day - previous.last_scan_day).days
        if diff_days == 0:
            current = max(previous.current_streak, 1)
        elif diff_days == 1:
            current = previous.current_streak + 1
        elif diff_days > 1:
            current = 1
        else:
            # Backfilled scan: keep progress and the newest day seen.
            current = previous.current_streak
            last_day = previous.last_scan_day
    return StreakState(
        owner_id=previous.owner_id,
        current_streak=current,
        best_streak=max(previous.best_streak, current),
        last_scan_day=last_day,
    )


@dataclass(frozen=True)
class StreakCalculator:
    """Sole mutator of streak state.

    Used as a transaction step so the streak moves together with the scan
    counter on insert.
    """

    def update_streak(
        self, aggregate: UserAggregate, scan_at: datetime
    ) -> UserAggregate:
        """Return the aggregate with its streak fields advanced by one scan."""
        streak = compute_streak(aggregate.streak, scan_at)
        return replace(
            aggregate,
            current_streak=streak.current_streak,
            best_streak=streak.best_streak,
            last_scan_date=streak.last_scan_day,
        )
