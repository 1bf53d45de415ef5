"""Domain models for personalized care plans."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel

from gleam_backend.domain.scans import DetectedIssue


class Recommendations(BaseModel):
    """Four-bucket care routine."""

    immediate: list[str]
    daily: list[str]
    weekly: list[str]
    caution: list[str]


class PlanPayload(BaseModel):
    """Expected oracle output for plan generation."""

    plan: Recommendations


DEFAULT_PLAN = Recommendations(
    immediate=[
        "Brush with whitening toothpaste tonight",
        "Rinse with water after dark drinks",
        "Floss gently before bed",
    ],
    daily=[
        "Use an electric toothbrush each morning",
        "Swish a fluoride mouthwash before sleep",
    ],
    weekly=[
        "Apply gentle whitening strips once",
        "Polish with a soft whitening pen",
    ],
    caution=[
        "Skip dark sodas for 48 hours",
        "Limit coffee to one cup before noon",
    ],
)


class PlanSource(StrEnum):
    """Where a served plan came from."""

    DEFAULT = "default"
    CACHE = "cache"
    GENERATED = "generated"


class PlanFreshness(StrEnum):
    """Derived per-request plan state."""

    INSUFFICIENT_HISTORY = "insufficient_history"
    CACHE_FRESH = "cache_fresh"
    CACHE_STALE_OR_MISSING = "cache_stale_or_missing"


@dataclass(frozen=True)
class PlanCacheEntry:
    """Last generated plan for a user."""

    owner_id: str
    plan: Recommendations
    input_hash: str
    generated_at: datetime
    scan_count_at_generation: int


@dataclass(frozen=True)
class PlanHistorySnapshot:
    """One scan as seen by the plan generator."""

    captured_at: datetime
    whiteness_score: int
    shade: str
    detected_issues: list[DetectedIssue] = field(default_factory=list)
    lifestyle_tags: list[str] = field(default_factory=list)
    personal_takeaway: str = ""


@dataclass(frozen=True)
class PlanMeta:
    """Metadata returned alongside every plan."""

    source: PlanSource
    unchanged: bool
    reason: str
    total_scans: int
    scans_until_next_plan: int
    scans_since_last_plan: int
    plan_available: bool
    refresh_interval: int
    input_hash: str | None = None
    generated_at: datetime | None = None


@dataclass(frozen=True)
class PlanOutcome:
    """Plan plus metadata."""

    plan: Recommendations
    meta: PlanMeta
