"""Pydantic models for the HTTP surface."""

from datetime import date, datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from gleam_backend.domain.plans import PlanOutcome, PlanSource, Recommendations
from gleam_backend.domain.scans import ScanRecord, ScanResult
from gleam_backend.domain.streaks import StreakState


class ApiModel(BaseModel):
    """Base model with camelCase wire names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AnalyzeRequest(ApiModel):
    """Analyze request payload. List fields are cleaned by the service."""

    image: str | None = None
    tags: list[Any] | None = None
    previous_takeaways: list[Any] | None = None
    tag_history: list[Any] | None = None


class StreakPayload(ApiModel):
    current: int
    best: int
    last_scan_date: date | None

    @classmethod
    def from_state(cls, state: StreakState) -> "StreakPayload":
        return cls(
            current=state.current_streak,
            best=state.best_streak,
            last_scan_date=state.last_scan_day,
        )


class HistoryItem(ApiModel):
    """Stored scan as returned to clients."""

    id: UUID
    result: ScanResult
    context_tags: list[str]
    created_at: datetime

    @classmethod
    def from_record(cls, record: ScanRecord) -> "HistoryItem":
        return cls(
            id=record.id,
            result=record.result,
            context_tags=record.context_tags,
            created_at=record.created_at,
        )


class AnalyzeResponse(HistoryItem):
    streak: StreakPayload


class HistoryResponse(ApiModel):
    items: list[HistoryItem]


class DeleteResponse(ApiModel):
    success: bool = True


class PlanMetaPayload(ApiModel):
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


class PlanResponse(ApiModel):
    plan: Recommendations
    meta: PlanMetaPayload

    @classmethod
    def from_outcome(cls, outcome: PlanOutcome) -> "PlanResponse":
        meta = outcome.meta
        return cls(
            plan=outcome.plan,
            meta=PlanMetaPayload(
                source=meta.source,
                unchanged=meta.unchanged,
                reason=meta.reason,
                total_scans=meta.total_scans,
                scans_until_next_plan=meta.scans_until_next_plan,
                scans_since_last_plan=meta.scans_since_last_plan,
                plan_available=meta.plan_available,
                refresh_interval=meta.refresh_interval,
                input_hash=meta.input_hash,
                generated_at=meta.generated_at,
            ),
        )
