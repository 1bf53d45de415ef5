"""Personalized plan freshness policy and generation."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import Protocol

from pydantic import ValidationError

from gleam_backend.domain.aggregates import UserAggregate
from gleam_backend.domain.lifestyle import summarize_tag_usage
from gleam_backend.domain.plans import (
    DEFAULT_PLAN,
    PlanCacheEntry,
    PlanFreshness,
    PlanHistorySnapshot,
    PlanMeta,
    PlanOutcome,
    PlanPayload,
    PlanSource,
    Recommendations,
)
from gleam_backend.domain.scans import ScanRecord
from gleam_backend.errors import GenerationFailed
from gleam_backend.services.aggregates import AggregateStore
from gleam_backend.services.hashing import compute_history_hash
from gleam_backend.services.oracle import call_oracle
from gleam_backend.services.scans import ScanRepository

_logger = logging.getLogger(__name__)

_STRING_LIST: dict[str, object] = {"type": "array", "items": {"type": "string"}}

PLAN_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "plan": {
            "type": "object",
            "properties": {
                "immediate": _STRING_LIST,
                "daily": _STRING_LIST,
                "weekly": _STRING_LIST,
                "caution": _STRING_LIST,
            },
            "required": ["immediate", "daily", "weekly", "caution"],
            "additionalProperties": False,
        }
    },
    "required": ["plan"],
    "additionalProperties": False,
}

PLAN_INSTRUCTIONS = "\n".join(
    [
        "You are Gleam's whitening routine architect. Create concise, "
        "motivating care plans that fit everyday life.",
        "Guidance:",
        "- Provide 1-2 items per list; keep actions distinct and tightly focused.",
        "- Max 14 words per item, starting with an action verb that references "
        "a relevant detail.",
        "- Mirror the provided lifestyle tags (e.g., coffee) or detected issues "
        "with tailored suggestions.",
        "- Reinforce safe pacing; avoid drastic or clinical treatments.",
        "- If history indicates strong momentum, end one item with a short "
        "encouragement.",
        "- Avoid generic advice that could apply to anyone.",
    ]
)

MAX_LIFESTYLE_THEMES = 4
MAX_RECENT_TAKEAWAYS = 3


class PlanClient(Protocol):
    """Interface for the plan generation oracle."""

    async def generate(
        self,
        *,
        model: str,
        instructions: str,
        prompt: str,
        schema: dict[str, object],
    ) -> dict[str, object]:
        """Return raw structured plan data."""


@dataclass(frozen=True)
class FreshnessDecision:
    """Outcome of the freshness policy for one request."""

    state: PlanFreshness
    reason: str


def scans_since_generation(total_scans: int, cache: PlanCacheEntry | None) -> int:
    """Return scans recorded since the cached plan, never negative."""
    if cache is None:
        return total_scans
    return max(total_scans - cache.scan_count_at_generation, 0)


def decide_freshness(
    total_scans: int,
    cache: PlanCacheEntry | None,
    *,
    min_scans: int,
    refresh_interval: int,
) -> FreshnessDecision:
    """Decide whether to serve the default, the cache, or a new plan."""
    if total_scans < min_scans:
        return FreshnessDecision(
            PlanFreshness.INSUFFICIENT_HISTORY, "insufficient_history"
        )
    if cache is None:
        return FreshnessDecision(PlanFreshness.CACHE_STALE_OR_MISSING, "no_cached_plan")
    if scans_since_generation(total_scans, cache) < refresh_interval:
        return FreshnessDecision(PlanFreshness.CACHE_FRESH, "cache_fresh")
    return FreshnessDecision(
        PlanFreshness.CACHE_STALE_OR_MISSING, "refresh_interval_reached"
    )


def to_snapshot(record: ScanRecord) -> PlanHistorySnapshot:
    """Project a stored scan onto the plan generator's view."""
    return PlanHistorySnapshot(
        captured_at=record.created_at,
        whiteness_score=record.result.whiteness_score,
        shade=record.result.shade,
        detected_issues=list(record.result.detected_issues),
        lifestyle_tags=list(record.context_tags),
        personal_takeaway=record.result.personal_takeaway.strip(),
    )


def store_plan(
    aggregate: UserAggregate,
    plan: Recommendations,
    input_hash: str,
    generated_at: datetime,
    scan_count: int,
) -> UserAggregate:
    """Return the aggregate with a new cached plan."""
    return replace(
        aggregate,
        latest_plan=plan,
        latest_plan_input_hash=input_hash,
        latest_plan_updated_at=generated_at,
        latest_plan_scan_count=min(scan_count, aggregate.total_scan_count),
    )


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class PlanService:
    """Serves cached, default, or freshly generated plans."""

    scans: ScanRepository
    aggregates: AggregateStore
    client: PlanClient
    model: str
    min_scans: int = 10
    refresh_interval: int = 10
    context_scan_limit: int = 10
    timeout_seconds: float = 30.0
    clock: Callable[[], datetime] = _utcnow

    async def get_plan(self, owner_id: str) -> PlanOutcome:
        """Return the plan for a user, regenerating when it is due."""
        aggregate = self.aggregates.load(owner_id)
        total = aggregate.total_scan_count
        cache = aggregate.plan_cache
        decision = decide_freshness(
            total,
            cache,
            min_scans=self.min_scans,
            refresh_interval=self.refresh_interval,
        )
        if decision.state is PlanFreshness.INSUFFICIENT_HISTORY:
            return self._default(total, cache, decision.reason)
        if decision.state is PlanFreshness.CACHE_FRESH and cache is not None:
            return self._cached(total, cache)

        records = self.scans.list_recent(owner_id, self.context_scan_limit)
        if not records:
            _logger.warning(
                "Scan counter reports history but none is stored",
                extra={"user_id": owner_id, "total_scans": total},
            )
            return self._default(total, cache, "no_history")

        snapshot = [to_snapshot(record) for record in records]
        input_hash = compute_history_hash(snapshot)
        plan = await self._generate(owner_id, snapshot)
        generated_at = self.clock()
        committed = self.aggregates.transact(
            owner_id,
            lambda current: store_plan(current, plan, input_hash, generated_at, total),
            operation="store_plan",
        )
        _logger.info(
            "Personalized plan generated",
            extra={
                "user_id": owner_id,
                "reason": decision.reason,
                "total_scans": committed.total_scan_count,
                "input_hash": input_hash,
            },
        )
        new_cache = committed.plan_cache
        since = scans_since_generation(committed.total_scan_count, new_cache)
        return PlanOutcome(
            plan=plan,
            meta=PlanMeta(
                source=PlanSource.GENERATED,
                unchanged=False,
                reason=decision.reason,
                total_scans=committed.total_scan_count,
                scans_until_next_plan=max(self.refresh_interval - since, 0),
                scans_since_last_plan=since,
                plan_available=True,
                refresh_interval=self.refresh_interval,
                input_hash=input_hash,
                generated_at=generated_at,
            ),
        )

    async def _generate(
        self, owner_id: str, snapshot: list[PlanHistorySnapshot]
    ) -> Recommendations:
        raw = await call_oracle(
            self.client.generate(
                model=self.model,
                instructions=PLAN_INSTRUCTIONS,
                prompt=build_plan_prompt(snapshot),
                schema=PLAN_SCHEMA,
            ),
            timeout_seconds=self.timeout_seconds,
            operation="generate_plan",
            owner_id=owner_id,
        )
        try:
            return PlanPayload.model_validate(raw).plan
        except ValidationError as exc:
            _logger.warning(
                "Plan output failed validation", extra={"user_id": owner_id}
            )
            raise GenerationFailed("Invalid plan output") from exc

    def _default(
        self, total: int, cache: PlanCacheEntry | None, reason: str
    ) -> PlanOutcome:
        return PlanOutcome(
            plan=DEFAULT_PLAN,
            meta=PlanMeta(
                source=PlanSource.DEFAULT,
                unchanged=False,
                reason=reason,
                total_scans=total,
                scans_until_next_plan=max(self.min_scans - total, 0),
                scans_since_last_plan=scans_since_generation(total, cache),
                plan_available=False,
                refresh_interval=self.refresh_interval,
            ),
        )

    def _cached(self, total: int, cache: PlanCacheEntry) -> PlanOutcome:
        since = scans_since_generation(total, cache)
        return PlanOutcome(
            plan=cache.plan,
            meta=PlanMeta(
                source=PlanSource.CACHE,
                unchanged=True,
                reason="cache_fresh",
                total_scans=total,
                scans_until_next_plan=max(self.refresh_interval - since, 0),
                scans_since_last_plan=since,
                plan_available=True,
                refresh_interval=self.refresh_interval,
                input_hash=cache.input_hash,
                generated_at=cache.generated_at,
            ),
        )


def build_plan_prompt(snapshot: list[PlanHistorySnapshot]) -> str:
    """Compose the plan prompt from recent scans, newest first."""
    scores = ", ".join(str(entry.whiteness_score) for entry in snapshot)
    themes: list[str] = []
    for entry in snapshot:
        for tag in entry.lifestyle_tags:
            if tag not in themes:
                themes.append(tag)
    takeaways = [
        entry.personal_takeaway for entry in snapshot if entry.personal_takeaway
    ]
    usage = summarize_tag_usage([entry.lifestyle_tags for entry in snapshot])

    hints = [f"Recent whiteness scores (latest first): {scores}."]
    if themes:
        hints.append(
            "Lifestyle themes to acknowledge: "
            f"{', '.join(themes[:MAX_LIFESTYLE_THEMES])}."
        )
    if takeaways:
        hints.append(
            "Recent encouragements to build on: "
            f"{' | '.join(takeaways[:MAX_RECENT_TAKEAWAYS])}."
        )
    hints.append(f"Lifestyle tag usage across these scans: {usage.summary()}.")

    history = "\n".join(
        format_snapshot(entry, index) for index, entry in enumerate(snapshot, start=1)
    )
    return (
        "Craft a compact whitening routine tailored to this person. "
        "Keep each action hyper-specific to their shade progress, "
        "detected issues, or lifestyle tags so it feels made for them. "
        "Highlight safe at-home steps and energizing nudges. "
        f"{' '.join(hints)} "
        f"History:\n{history}"
    )


def format_snapshot(entry: PlanHistorySnapshot, position: int) -> str:
    """Render one scan as a prompt line."""
    tags = ", ".join(entry.lifestyle_tags) if entry.lifestyle_tags else "none"
    issues = (
        "; ".join(f"{issue.key} ({issue.severity})" for issue in entry.detected_issues)
        or "none"
    )
    return (
        f"Scan {position}: score {entry.whiteness_score}/100, "
        f"shade {entry.shade}, issues: {issues}, lifestyle tags: {tags}. "
        f"Takeaway: {entry.personal_takeaway}."
    )
