"""Scan record store and the insert/delete write paths."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from gleam_backend.domain.aggregates import UserAggregate
from gleam_backend.domain.scans import ScanRecord, ScanResult
from gleam_backend.domain.streaks import StreakState
from gleam_backend.errors import InternalError, NotFound
from gleam_backend.services.aggregates import AggregateStore
from gleam_backend.services.counters import ScanCounterReconciler
from gleam_backend.services.streaks import StreakCalculator

_logger = logging.getLogger(__name__)


class ScanRepository(Protocol):
    """Persistence interface for a user's scan records."""

    def insert(
        self, owner_id: str, result: ScanResult, context_tags: list[str]
    ) -> ScanRecord:
        """Store a scan with a generated id and server timestamp."""

    def list_recent(self, owner_id: str, limit: int) -> list[ScanRecord]:
        """Return scans newest first, ties broken by insertion order."""

    def delete(self, owner_id: str, scan_id: UUID) -> bool:
        """Delete a scan. Return False when it does not exist."""

    def count(self, owner_id: str) -> int:
        """Return the number of stored scans for the user."""


@dataclass
class ScanService:
    """Application service for scan history."""

    repository: ScanRepository
    aggregates: AggregateStore
    reconciler: ScanCounterReconciler
    streaks: StreakCalculator
    default_limit: int = 25
    max_limit: int = 100

    def record_scan(
        self, owner_id: str, result: ScanResult, context_tags: list[str]
    ) -> tuple[ScanRecord, StreakState]:
        """Persist a scan, then count it and advance the streak together.

        If the counter update cannot commit, the stored scan is removed again
        so the counter keeps matching the stored records.
        """
        record = self.repository.insert(owner_id, result, context_tags)

        def count_and_advance(aggregate: UserAggregate) -> UserAggregate:
            advanced = self.streaks.update_streak(aggregate, record.created_at)
            return self.reconciler.on_insert(advanced)

        try:
            committed = self.aggregates.transact(
                owner_id, count_and_advance, operation="record_scan"
            )
        except InternalError:
            _logger.warning(
                "Removing scan after failed counter update",
                extra={"user_id": owner_id, "scan_id": str(record.id)},
            )
            self.repository.delete(owner_id, record.id)
            raise
        _logger.info(
            "Scan recorded",
            extra={
                "user_id": owner_id,
                "scan_id": str(record.id),
                "total_scans": committed.total_scan_count,
                "current_streak": committed.current_streak,
            },
        )
        return record, committed.streak

    def list_history(self, owner_id: str, limit: int | None = None) -> list[ScanRecord]:
        """Return the newest scans for the user."""
        return self.repository.list_recent(owner_id, self.clamp_limit(limit))

    def latest(self, owner_id: str) -> ScanRecord:
        """Return the most recent scan or raise `NotFound`."""
        records = self.repository.list_recent(owner_id, 1)
        if not records:
            raise NotFound("No scans found")
        return records[0]

    def delete_scan(self, owner_id: str, scan_id: UUID) -> None:
        """Delete a scan and reconcile counters.

        The recount also runs when the scan is already gone, so a retry
        after a failed recount still repairs the counters.
        """
        deleted = self.repository.delete(owner_id, scan_id)
        self.reconciler.on_delete(owner_id)
        if not deleted:
            raise NotFound("Scan not found")

    def clamp_limit(self, limit: int | None) -> int:
        if limit is None:
            return self.default_limit
        return max(1, min(limit, self.max_limit))
