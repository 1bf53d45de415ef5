"""Keeps denormalized scan counters equal to stored cardinality."""

import logging
from dataclasses import dataclass, replace
from typing import Protocol

from gleam_backend.domain.aggregates import UserAggregate
from gleam_backend.services.aggregates import AggregateStore

_logger = logging.getLogger(__name__)


class ScanCountSource(Protocol):
    """Anything that can count a user's stored scans."""

    def count(self, owner_id: str) -> int:
        """Return the number of stored scans for the user."""


def apply_recount(aggregate: UserAggregate, true_count: int) -> UserAggregate:
    """Return the aggregate reset to `true_count` with the plan count clamped."""
    plan_count = aggregate.latest_plan_scan_count
    if plan_count is not None:
        plan_count = min(plan_count, true_count)
    return replace(
        aggregate,
        total_scan_count=true_count,
        latest_plan_scan_count=plan_count,
    )


@dataclass
class ScanCounterReconciler:
    """Maintains `total_scan_count` and the plan's generation count."""

    scans: ScanCountSource
    aggregates: AggregateStore

    def on_insert(self, aggregate: UserAggregate) -> UserAggregate:
        """Return the aggregate with one more scan counted.

        Runs inside the insert transaction, next to the streak update.
        """
        return replace(aggregate, total_scan_count=aggregate.total_scan_count + 1)

    def on_delete(self, owner_id: str) -> UserAggregate:
        """Reconcile counters after a scan was removed."""
        return self.refresh_counters(owner_id)

    def refresh_counters(self, owner_id: str) -> UserAggregate:
        """Recount stored scans and write the true total back."""

        def recount(aggregate: UserAggregate) -> UserAggregate:
            true_count = self.scans.count(owner_id)
            if true_count != aggregate.total_scan_count:
                _logger.info(
                    "Scan counter corrected",
                    extra={
                        "user_id": owner_id,
                        "stored_count": aggregate.total_scan_count,
                        "true_count": true_count,
                    },
                )
            return apply_recount(aggregate, true_count)

        return self.aggregates.transact(owner_id, recount, operation="refresh_counters")
