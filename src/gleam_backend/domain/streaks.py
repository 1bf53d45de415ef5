"""Domain models for daily scan streaks."""

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class StreakState:
    """Current and best streak for a user, in UTC calendar days."""

    owner_id: str
    current_streak: int = 0
    best_streak: int = 0
    last_scan_day: date | None = None
