"""Bounded calls to external model oracles."""

import asyncio
import logging
from collections.abc import Awaitable

from gleam_backend.errors import GenerationFailed, GenerationTimeout

_logger = logging.getLogger(__name__)


async def call_oracle(
    call: Awaitable[dict[str, object]],
    *,
    timeout_seconds: float,
    operation: str,
    owner_id: str | None = None,
) -> dict[str, object]:
    """Await an oracle call within `timeout_seconds`.

    Timeouts raise `GenerationTimeout`; any other failure raises
    `GenerationFailed` chained to the original error.
    """
    try:
        return await asyncio.wait_for(call, timeout=timeout_seconds)
    except TimeoutError as exc:
        _logger.warning(
            "Oracle call timed out",
            extra={
                "operation": operation,
                "user_id": owner_id,
                "timeout_seconds": timeout_seconds,
            },
        )
        raise GenerationTimeout() from exc
    except Exception as exc:
        _logger.exception(
            "Oracle call failed",
            extra={"operation": operation, "user_id": owner_id},
        )
        raise GenerationFailed(f"{operation} failed") from exc
