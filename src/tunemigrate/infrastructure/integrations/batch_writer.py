# Hey future me - this is how big ordered lists get INTO the destination!
#
# Providers cap relationship writes (Tidal: 20 entries per call), so we slice the
# list into chunks and send them ONE AFTER ANOTHER. Never in parallel: the
# destination has no ordered/idempotent merge, concurrent chunks would land in
# random order.
#
# THE PREPEND TRAP:
# Tidal favorites PREPEND each submitted batch (newest on top). Sending
# [1..20] then [21..40] leaves the collection as 21..40 on top of 1..20, and
# each chunk reversed inside itself. With preserve_order=True we reverse every
# slice before sending, so after N prepends the destination shows the source
# order again. Need it EXACT (including the chunk seams)? chunk_size=1.
#
# FIRST FAILURE STOPS: the first non-2xx chunk ends the write. Chunks already
# written stay written - there's no rollback endpoint to call.
"""Ordering-aware chunked batch writer."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Any, Generic, TypeVar

from tunemigrate.domain.ports import BatchWriteResult, StepCallback
from tunemigrate.infrastructure.integrations.provider_errors import (
    provider_error_from_response,
)
from tunemigrate.infrastructure.integrations.request_gateway import (
    QueryParams,
    RequestGateway,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_CHUNK_SIZE = 20


def chunked(items: Sequence[T], chunk_size: int) -> list[list[T]]:
    """Split items into consecutive slices of at most chunk_size."""
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    return [list(items[i : i + chunk_size]) for i in range(0, len(items), chunk_size)]


class ChunkedBatchWriter(Generic[T]):
    """Writes an ordered list to ONE destination endpoint in sequential chunks."""

    def __init__(
        self,
        gateway: RequestGateway,
        path: str,
        encode_chunk: Callable[[list[T]], Any],
        method: str = "POST",
        content_type: str | None = None,
        query: QueryParams | None = None,
    ) -> None:
        """
        Initialize the writer.

        Args:
            gateway: Destination gateway
            path: Write endpoint
            encode_chunk: Builds the request body for one slice
            method: HTTP method of the write call
            content_type: Body content type
            query: Query parameters sent with every chunk
        """
        self.gateway = gateway
        self.path = path
        self.encode_chunk = encode_chunk
        self.method = method
        self.content_type = content_type
        self.query = query

    async def write_all(
        self,
        items: Sequence[T],
        token: str,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        preserve_order: bool = False,
        on_chunk: StepCallback | None = None,
    ) -> BatchWriteResult:
        """Write all items, stopping at the first failed chunk.

        Args:
            items: Items in the order they should end up in
            token: Bearer token
            chunk_size: Max items per write call
            preserve_order: Reverse each slice (for destinations that prepend)
            on_chunk: Called with the slice size after each successful write

        Returns:
            BatchWriteResult - success, or the first chunk's ProviderAPIError

        Raises:
            ValueError: chunk_size < 1
            NetworkError / RequestTimeoutError: From the gateway
        """
        chunks = chunked(items, chunk_size)
        result = BatchWriteResult(success=True)

        for index, chunk in enumerate(chunks, start=1):
            payload_items = list(reversed(chunk)) if preserve_order else chunk
            logger.debug(
                f"{self.gateway.name}: writing chunk {index}/{len(chunks)} "
                f"({len(chunk)} items) to {self.path}"
            )
            response = await self.gateway.send(
                self.method,
                self.path,
                token,
                query=self.query,
                body=self.encode_chunk(payload_items),
                content_type=self.content_type,
            )

            if not response.is_success:
                error = provider_error_from_response(self.gateway.name, response)
                logger.error(
                    f"{self.gateway.name}: chunk {index}/{len(chunks)} to {self.path} "
                    f"failed, stopping ({result.items_written} items already written): "
                    f"{error.message}"
                )
                result.success = False
                result.error = error
                return result

            result.chunks_written += 1
            result.items_written += len(chunk)
            if on_chunk is not None:
                on_chunk(len(chunk))

        return result
