"""Shared error wrapping for Supabase calls."""

import logging
from typing import Any

import httpx
from postgrest.exceptions import APIError

from gleam_backend.errors import StorageError

_logger = logging.getLogger(__name__)


def execute(query: Any, operation: str) -> Any:
    """Execute a PostgREST query, wrapping failures as `StorageError`."""
    try:
        return query.execute()
    except (APIError, httpx.HTTPError) as exc:
        _logger.error(
            "Supabase call failed",
            extra={"operation": operation, "error": str(exc)},
        )
        raise StorageError(operation) from exc
