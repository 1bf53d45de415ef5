"""Supabase-backed per-user aggregate repository."""

from dataclasses import dataclass
from datetime import date, datetime

from postgrest.exceptions import APIError
from supabase import Client

from gleam_backend.adapters.supabase_errors import execute
from gleam_backend.domain.aggregates import UserAggregate
from gleam_backend.domain.plans import Recommendations
from gleam_backend.errors import StorageError
from gleam_backend.services.aggregates import AggregateRepository

_UNIQUE_VIOLATION = "23505"


@dataclass
class SupabaseAggregateRepository(AggregateRepository):
    """Supabase implementation for `user_aggregates` rows."""

    client: Client

    def get(self, owner_id: str) -> UserAggregate | None:
        """Return the aggregate row for a user, if present."""
        response = execute(
            self.client.table("user_aggregates")
            .select("*")
            .eq("owner_id", owner_id)
            .limit(1),
            "get_aggregate",
        )
        if response.data:
            return _parse_row(response.data[0])
        return None

    def create(self, aggregate: UserAggregate) -> bool:
        """Insert the first aggregate row for a user."""
        try:
            response = (
                self.client.table("user_aggregates")
                .insert(_to_row(aggregate))
                .execute()
            )
        except APIError as exc:
            if exc.code == _UNIQUE_VIOLATION:
                return False
            raise StorageError("create_aggregate") from exc
        return bool(response.data)

    def compare_and_set(self, aggregate: UserAggregate, expected_version: int) -> bool:
        """Update the row only while it still holds `expected_version`."""
        response = execute(
            self.client.table("user_aggregates")
            .update(_to_row(aggregate))
            .eq("owner_id", aggregate.owner_id)
            .eq("version", expected_version),
            "update_aggregate",
        )
        return bool(response.data)


def _to_row(aggregate: UserAggregate) -> dict[str, object]:
    return {
        "owner_id": aggregate.owner_id,
        "total_scan_count": aggregate.total_scan_count,
        "current_streak": aggregate.current_streak,
        "best_streak": aggregate.best_streak,
        "last_scan_date": (
            aggregate.last_scan_date.isoformat() if aggregate.last_scan_date else None
        ),
        "latest_plan": (
            aggregate.latest_plan.model_dump(mode="json")
            if aggregate.latest_plan
            else None
        ),
        "latest_plan_input_hash": aggregate.latest_plan_input_hash,
        "latest_plan_updated_at": (
            aggregate.latest_plan_updated_at.isoformat()
            if aggregate.latest_plan_updated_at
            else None
        ),
        "latest_plan_scan_count": aggregate.latest_plan_scan_count,
        "version": aggregate.version,
    }


def _parse_row(row: dict[str, object]) -> UserAggregate:
    last_scan_raw = row.get("last_scan_date")
    updated_raw = row.get("latest_plan_updated_at")
    plan_raw = row.get("latest_plan")
    plan_count = row.get("latest_plan_scan_count")
    return UserAggregate(
        owner_id=str(row["owner_id"]),
        total_scan_count=int(row.get("total_scan_count") or 0),
        current_streak=int(row.get("current_streak") or 0),
        best_streak=int(row.get("best_streak") or 0),
        last_scan_date=(
            date.fromisoformat(last_scan_raw[:10])
            if isinstance(last_scan_raw, str) and last_scan_raw
            else None
        ),
        latest_plan=(
            Recommendations.model_validate(plan_raw)
            if isinstance(plan_raw, dict)
            else None
        ),
        latest_plan_input_hash=row.get("latest_plan_input_hash"),
        latest_plan_updated_at=(
            datetime.fromisoformat(updated_raw)
            if isinstance(updated_raw, str) and updated_raw
            else None
        ),
        latest_plan_scan_count=int(plan_count) if plan_count is not None else None,
        version=int(row.get("version") or 0),
    )
