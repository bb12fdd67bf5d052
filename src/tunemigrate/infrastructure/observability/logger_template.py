"""Shared logging helpers for long-running operations.

USAGE:
    from tunemigrate.infrastructure.observability.logger_template import log_operation

    async with log_operation(logger, "migrate_tracks", run_id="abc"):
        await migrate_tracks()
"""

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any


# Yo, this wraps one migration phase: {operation}.started / .completed / .failed, with
# duration_ms on the last two. On failure it logs WITH traceback and re-raises - the
# caller decides whether the run goes on (the orchestrator does, it's best-effort).
@asynccontextmanager
async def log_operation(
    logger: logging.Logger,
    operation: str,
    **context: Any,
) -> AsyncIterator[None]:
    """Context manager for logging operation start/end with automatic timing.

    Args:
        logger: Module logger
        operation: Operation name (e.g. "migrate_tracks")
        **context: Extra fields for every log line (e.g. run_id="abc")
    """
    start = time.monotonic()
    logger.info(f"{operation}.started", extra=context)
    try:
        yield
    except Exception as e:
        logger.error(
            f"{operation}.failed: {e}",
            extra={
                **context,
                "duration_ms": int((time.monotonic() - start) * 1000),
                "error_type": type(e).__name__,
            },
            exc_info=True,
        )
        raise
    logger.info(
        f"{operation}.completed",
        extra={**context, "duration_ms": int((time.monotonic() - start) * 1000)},
    )
