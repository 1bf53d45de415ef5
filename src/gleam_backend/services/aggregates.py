"""Optimistic read-modify-write transactions on the per-user aggregate."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Protocol

from gleam_backend.domain.aggregates import UserAggregate
from gleam_backend.errors import TransactionConflict

_logger = logging.getLogger(__name__)


class AggregateRepository(Protocol):
    """Persistence interface for per-user aggregate documents."""

    def get(self, owner_id: str) -> UserAggregate | None:
        """Return the aggregate for a user, if one was ever written."""

    def create(self, aggregate: UserAggregate) -> bool:
        """Insert a new aggregate. Return False if one already exists."""

    def compare_and_set(self, aggregate: UserAggregate, expected_version: int) -> bool:
        """Overwrite the aggregate only if its stored version matches."""


@dataclass
class AggregateStore:
    """Runs mutations against a user's aggregate with retry on lost races."""

    repository: AggregateRepository
    max_attempts: int = 5

    def load(self, owner_id: str) -> UserAggregate:
        """Return the stored aggregate or an empty one for new users."""
        return self.repository.get(owner_id) or UserAggregate(owner_id=owner_id)

    def transact(
        self,
        owner_id: str,
        mutate: Callable[[UserAggregate], UserAggregate],
        operation: str,
    ) -> UserAggregate:
        """Apply `mutate` atomically and return the committed aggregate.

        `mutate` may run more than once and must not have side effects
        beyond reading storage.
        """
        for attempt in range(1, self.max_attempts + 1):
            current = self.repository.get(owner_id)
            base = current or UserAggregate(owner_id=owner_id)
            updated = replace(mutate(base), owner_id=owner_id, version=base.version + 1)
            if current is None:
                committed = self.repository.create(updated)
            else:
                committed = self.repository.compare_and_set(
                    updated, expected_version=current.version
                )
            if committed:
                return updated
            _logger.warning(
                "Aggregate write conflict, retrying",
                extra={
                    "user_id": owner_id,
                    "operation": operation,
                    "attempt": attempt,
                },
            )
        raise TransactionConflict(operation, self.max_attempts)
