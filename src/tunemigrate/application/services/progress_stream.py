"""Turns a ProgressRecord into a server-push event feed.

Hey future me - the flow per stream:
1. open(id): unknown id -> EntityNotFoundException RIGHT AWAY, no stream is opened
2. every poll_interval: push the record's {text, progressBar?} snapshot
3. record finished -> push the final snapshot once more (the run writes its summary
   text and finishes in one go, the loop never sees it otherwise), then
   {"status": "done"}, delete the record, stop

The stream only READS. A client hanging up just ends the generator, the run
keeps going (and its finished record gets purged by the store's TTL).
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import Any

from tunemigrate.application.services.progress_tracker import (
    ProgressRecord,
    ProgressStore,
)
from tunemigrate.domain.exceptions import EntityNotFoundException

logger = logging.getLogger(__name__)

DONE_EVENT: dict[str, Any] = {"status": "done"}


class ProgressStreamPublisher:
    """Polls one progress record and yields its snapshots until it finishes."""

    def __init__(self, store: ProgressStore, poll_interval: float = 0.5) -> None:
        self.store = store
        self.poll_interval = poll_interval

    def open(self, record_id: str) -> AsyncIterator[dict[str, Any]]:
        """Validate the id and return the event iterator.

        Raises:
            EntityNotFoundException: No record with this id (never existed or
                already streamed to completion)
        """
        record = self.store.get(record_id)
        if record is None:
            raise EntityNotFoundException("Progress", record_id)
        return self._events(record_id, record)

    async def _events(
        self, record_id: str, record: ProgressRecord
    ) -> AsyncIterator[dict[str, Any]]:
        sent = 0
        try:
            while not record.finished:
                yield record.snapshot()
                sent += 1
                await asyncio.sleep(self.poll_interval)

            yield record.snapshot()
            yield dict(DONE_EVENT)
            self.store.remove(record_id)
            logger.debug(
                f"Progress stream {record_id} completed after {sent} update(s)"
            )
        except asyncio.CancelledError:
            logger.debug(f"Progress stream {record_id} closed by client")
            raise
