"""Detached background runs spawned from request handlers.

Hey future me - POST /migrate returns 202 BEFORE the heavy work starts. The work
itself is an asyncio.Task we keep a handle on here, for three reasons:
1. asyncio only keeps WEAK refs to tasks, an unreferenced task can be GC'd mid-run
2. crashes must end up in the log, not in "Task exception was never retrieved"
3. shutdown needs a list of what's still running

Each run carries a CancellationToken. Nothing cancels runs on a client disconnect
(by design of the product: closing the browser tab must NOT stop a migration).
The token exists so a run can be asked to stop at the next phase boundary, which
the app only does at shutdown before the hard cancel.
"""

import asyncio
import logging
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

logger = logging.getLogger(__name__)


class CancellationToken:
    """Cooperative stop flag handed to a background run."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass
class BackgroundRun:
    """Handle for one detached run."""

    run_id: str
    task: asyncio.Task[None]
    token: CancellationToken
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def get_status(self) -> dict[str, Any]:
        if not self.task.done():
            status = "running"
        elif self.task.cancelled():
            status = "cancelled"
        else:
            status = "failed" if self.task.exception() else "completed"
        return {
            "run_id": self.run_id,
            "status": status,
            "started_at": self.started_at.isoformat(),
            "cancel_requested": self.token.cancelled,
        }


RunFactory = Callable[[CancellationToken], Coroutine[Any, Any, None]]


class BackgroundRunRegistry:
    """Owns every detached run of this process."""

    def __init__(self) -> None:
        self._runs: dict[str, BackgroundRun] = {}

    def spawn(self, run_id: str, factory: RunFactory) -> BackgroundRun:
        """Start factory(token) as a detached task and track it.

        Args:
            run_id: Id of the run (same as its progress record id)
            factory: Builds the coroutine to run; receives the run's token

        Returns:
            The handle of the started run
        """
        if run_id in self._runs:
            raise ValueError(f"Run {run_id} is already active")

        token = CancellationToken()
        # create_task copies the current contextvars, so the correlation id of
        # the request that started the run shows up in every log line of the run
        task = asyncio.create_task(factory(token), name=f"run-{run_id}")
        run = BackgroundRun(run_id=run_id, task=task, token=token)
        self._runs[run_id] = run
        task.add_done_callback(lambda t: self._on_done(run_id, t))
        logger.info(f"Background run {run_id} started")
        return run

    def _on_done(self, run_id: str, task: asyncio.Task[None]) -> None:
        self._runs.pop(run_id, None)
        if task.cancelled():
            logger.warning(f"Background run {run_id} was cancelled")
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                f"Background run {run_id} crashed: {exc}",
                exc_info=(type(exc), exc, exc.__traceback__),
            )
        else:
            logger.info(f"Background run {run_id} finished")

    def get(self, run_id: str) -> BackgroundRun | None:
        return self._runs.get(run_id)

    def get_status(self) -> list[dict[str, Any]]:
        return [run.get_status() for run in self._runs.values()]

    async def shutdown(self, grace_seconds: float = 10.0) -> None:
        """Ask every run to stop, wait up to grace_seconds, then cancel the rest."""
        runs = list(self._runs.values())
        if not runs:
            return

        logger.info(f"Stopping {len(runs)} background run(s)")
        for run in runs:
            run.token.cancel()

        tasks = [run.task for run in runs]
        _, pending = await asyncio.wait(tasks, timeout=grace_seconds)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            logger.warning(
                f"Cancelled {len(pending)} background run(s) after {grace_seconds}s"
            )

    def __len__(self) -> int:
        return len(self._runs)
