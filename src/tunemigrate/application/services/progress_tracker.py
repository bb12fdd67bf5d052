# Hey future me - this is the live status of ONE run that the browser watches!
#
# OWNERSHIP: exactly one writer (the background run that created the record) and,
# by convention, one reader (the /progress stream). Everything lives in memory,
# a restart forgets all records - that's fine, runs don't survive restarts either.
#
# STATE MACHINE: created -> running -> finished. Only forward. finish() takes a
# snapshot and from then on every read returns that snapshot, no matter what
# still pokes at the record (or its progress bar) afterwards.
#
# NO GLOBALS: the ProgressStore is created once in main.create_app() and handed
# to the HTTP layer and the runs by reference (app.state / dependencies).
"""In-memory progress records for background runs."""

from __future__ import annotations

import copy
import logging
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from tunemigrate.domain.exceptions import ProgressAllocationError

logger = logging.getLogger(__name__)


@dataclass
class ProgressBar:
    """A (current, total) counter that never runs past total."""

    total: int
    current: int = 0

    def next(self, steps: int = 1) -> int | None:
        """Advance by steps, clamped at total.

        Returns:
            The new value, or None if the bar was already complete
        """
        if self.current >= self.total:
            return None
        self.current = min(self.current + steps, self.total)
        return self.current

    def is_complete(self) -> bool:
        return self.current >= self.total

    def reset(self) -> None:
        self.current = 0

    def snapshot(self) -> dict[str, int]:
        return {"current": self.current, "total": self.total}


class ProgressState(Enum):
    """Progress record lifecycle states."""

    CREATED = "created"
    RUNNING = "running"
    FINISHED = "finished"


class ProgressRecord:
    """Mutable status text plus optional progress bar of one run."""

    def __init__(
        self, record_id: str, clock: Callable[[], float] = time.monotonic
    ) -> None:
        self.id = record_id
        self._clock = clock
        self._text: str = ""
        self._progress_bar: ProgressBar | None = None
        self._state = ProgressState.CREATED
        self._final: dict[str, Any] | None = None
        self.created_at = clock()
        self.finished_at: float | None = None

    @property
    def state(self) -> ProgressState:
        return self._state

    @property
    def finished(self) -> bool:
        return self._state is ProgressState.FINISHED

    def _accepts_updates(self, what: str) -> bool:
        if self.finished:
            logger.debug(f"Progress {self.id}: ignoring {what} update after finish")
            return False
        self._state = ProgressState.RUNNING
        return True

    @property
    def text(self) -> str:
        if self._final is not None:
            return self._final["text"]
        return self._text

    @text.setter
    def text(self, value: str) -> None:
        if self._accepts_updates("text"):
            self._text = value

    @property
    def progress_bar(self) -> ProgressBar | None:
        if self._final is not None:
            frozen = self._final.get("progressBar")
            if frozen is None:
                return None
            return ProgressBar(total=frozen["total"], current=frozen["current"])
        return self._progress_bar

    @progress_bar.setter
    def progress_bar(self, bar: ProgressBar | None) -> None:
        if self._accepts_updates("progress bar"):
            self._progress_bar = bar

    def start(self, text: str, total: int | None = None) -> None:
        """Set a new phase text, with a fresh progress bar when total is given."""
        self.text = text
        self.progress_bar = ProgressBar(total) if total is not None else None

    def advance(self, steps: int = 1) -> None:
        """Advance the current progress bar, if any."""
        if self._progress_bar is not None and not self.finished:
            self._progress_bar.next(steps)

    def _live_snapshot(self) -> dict[str, Any]:
        state: dict[str, Any] = {"text": self._text}
        if self._progress_bar is not None:
            state["progressBar"] = self._progress_bar.snapshot()
        return state

    def snapshot(self) -> dict[str, Any]:
        """Current {text, progressBar?} payload, frozen once finished."""
        if self._final is not None:
            return copy.deepcopy(self._final)
        return self._live_snapshot()

    def finish(self) -> None:
        """Enter the terminal state. Calling it twice is harmless."""
        if self.finished:
            return
        self._final = self._live_snapshot()
        self._state = ProgressState.FINISHED
        self.finished_at = self._clock()


class ProgressStore:
    """Explicit id -> ProgressRecord registry."""

    def __init__(
        self,
        max_records: int = 1000,
        ttl_seconds: float = 600.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize the store.

        Args:
            max_records: Live records allowed at once
            ttl_seconds: How long a FINISHED record nobody streamed is kept
            clock: Monotonic clock (injectable for tests)
        """
        self.max_records = max_records
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._records: dict[str, ProgressRecord] = {}

    def create(self) -> tuple[str, ProgressRecord]:
        """Allocate a record under a fresh opaque id.

        Raises:
            ProgressAllocationError: The store is full
        """
        self.purge_expired()
        if len(self._records) >= self.max_records:
            raise ProgressAllocationError(
                f"Too many active runs ({len(self._records)}), try again later"
            )
        record_id = str(uuid.uuid4())
        record = ProgressRecord(record_id, clock=self._clock)
        self._records[record_id] = record
        logger.debug(f"Progress record {record_id} created")
        return record_id, record

    def get(self, record_id: str) -> ProgressRecord | None:
        return self._records.get(record_id)

    def remove(self, record_id: str) -> bool:
        """Delete a record. Returns False if it was already gone."""
        removed = self._records.pop(record_id, None) is not None
        if removed:
            logger.debug(f"Progress record {record_id} removed")
        return removed

    def purge_expired(self) -> int:
        """Drop finished records older than the TTL that no stream picked up."""
        now = self._clock()
        expired = [
            record_id
            for record_id, record in self._records.items()
            if record.finished_at is not None
            and now - record.finished_at >= self.ttl_seconds
        ]
        for record_id in expired:
            del self._records[record_id]
        if expired:
            logger.info(f"Purged {len(expired)} unobserved finished progress records")
        return len(expired)

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._records

    def __len__(self) -> int:
        return len(self._records)
