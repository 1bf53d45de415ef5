"""Per-user aggregate document."""

from dataclasses import dataclass
from datetime import date, datetime

from gleam_backend.domain.plans import PlanCacheEntry, Recommendations
from gleam_backend.domain.streaks import StreakState


@dataclass(frozen=True)
class UserAggregate:
    """Denormalized counters, streak and plan cache for one user.

    `version` is bumped on every committed write and guards
    compare-and-set updates.
    """

    owner_id: str
    total_scan_count: int = 0
    current_streak: int = 0
    best_streak: int = 0
    last_scan_date: date | None = None
    latest_plan: Recommendations | None = None
    latest_plan_input_hash: str | None = None
    latest_plan_updated_at: datetime | None = None
    latest_plan_scan_count: int | None = None
    version: int = 0

    @property
    def streak(self) -> StreakState:
        return StreakState(
            owner_id=self.owner_id,
            current_streak=self.current_streak,
            best_streak=self.best_streak,
            last_scan_day=self.last_scan_date,
        )

    @property
    def plan_cache(self) -> PlanCacheEntry | None:
        if (
            self.latest_plan is None
            or self.latest_plan_scan_count is None
            or self.latest_plan_updated_at is None
        ):
            return None
        return PlanCacheEntry(
            owner_id=self.owner_id,
            plan=self.latest_plan,
            input_hash=self.latest_plan_input_hash or "",
            generated_at=self.latest_plan_updated_at,
            scan_count_at_generation=self.latest_plan_scan_count,
        )
