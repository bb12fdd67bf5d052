"""Tests for ChunkedBatchWriter."""

import json
from collections.abc import Callable

import httpx
import pytest

from tunemigrate.domain.exceptions import NetworkError
from tunemigrate.infrastructure.integrations.batch_writer import (
    ChunkedBatchWriter,
    chunked,
)
from tunemigrate.infrastructure.integrations.request_gateway import RequestGateway


def _encode(ids: list[str]) -> dict[str, list[dict[str, str]]]:
    return {"data": [{"id": i, "type": "tracks"} for i in ids]}


class PrependingDestination:
    """Fake collection endpoint that puts each submitted batch ON TOP."""

    def __init__(self) -> None:
        self.collection: list[str] = []
        self.bodies: list[list[str]] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        ids = [entry["id"] for entry in json.loads(request.content)["data"]]
        self.bodies.append(ids)
        self.collection[:0] = ids
        return httpx.Response(201)

    def listing_oldest_first(self) -> list[str]:
        """Collection as the user sees it after sorting by 'date added', oldest first."""
        return list(reversed(self.collection))


class TestChunked:
    """Test slice building."""

    def test_splits_into_consecutive_slices(self) -> None:
        assert chunked([1, 2, 3, 4, 5], 2) == [[1, 2], [3, 4], [5]]

    def test_empty_input(self) -> None:
        assert chunked([], 20) == []

    def test_rejects_non_positive_size(self) -> None:
        with pytest.raises(ValueError):
            chunked([1], 0)


class TestWriteAll:
    """Test sequential chunked writes."""

    async def test_45_items_prepend_destination_matches_source_order(
        self, make_gateway: Callable[..., RequestGateway]
    ) -> None:
        destination = PrependingDestination()
        gateway = make_gateway(destination.handler)
        writer: ChunkedBatchWriter[str] = ChunkedBatchWriter(
            gateway, "/userCollections/u1/relationships/tracks", _encode
        )
        # Source order oldest first; the favorites view lists newest on top,
        # so the top of the collection must be the LAST source item.
        source = [f"t{i:02d}" for i in range(45)]

        result = await writer.write_all(
            source, "tok", chunk_size=20, preserve_order=True
        )

        assert result.success is True
        assert result.chunks_written == 3
        assert result.items_written == 45
        assert [len(body) for body in destination.bodies] == [20, 20, 5]
        assert destination.collection == list(reversed(source))

    async def test_chunk_size_one_gives_exact_order(
        self, make_gateway: Callable[..., RequestGateway]
    ) -> None:
        destination = PrependingDestination()
        writer: ChunkedBatchWriter[str] = ChunkedBatchWriter(
            make_gateway(destination.handler), "/favorites", _encode
        )
        source = ["a", "b", "c"]

        await writer.write_all(source, "tok", chunk_size=1, preserve_order=True)

        assert destination.bodies == [["a"], ["b"], ["c"]]
        assert destination.listing_oldest_first() == source

    async def test_without_preserve_order_slices_are_sent_as_is(
        self, make_gateway: Callable[..., RequestGateway]
    ) -> None:
        destination = PrependingDestination()
        writer: ChunkedBatchWriter[str] = ChunkedBatchWriter(
            make_gateway(destination.handler), "/playlists/p1/relationships/items", _encode
        )

        await writer.write_all(["a", "b", "c"], "tok", chunk_size=2)

        assert destination.bodies == [["a", "b"], ["c"]]

    async def test_on_chunk_called_with_slice_sizes(
        self, make_gateway: Callable[..., RequestGateway]
    ) -> None:
        writer: ChunkedBatchWriter[str] = ChunkedBatchWriter(
            make_gateway(lambda request: httpx.Response(201)), "/favorites", _encode
        )
        sizes: list[int] = []

        await writer.write_all(
            [str(i) for i in range(5)], "tok", chunk_size=2, on_chunk=sizes.append
        )

        assert sizes == [2, 2, 1]

    async def test_method_content_type_and_query_are_used(
        self, make_gateway: Callable[..., RequestGateway]
    ) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(204)

        writer: ChunkedBatchWriter[str] = ChunkedBatchWriter(
            make_gateway(handler),
            "/favorites",
            _encode,
            method="DELETE",
            content_type="application/vnd.api+json",
            query={"countryCode": "DE"},
        )

        await writer.write_all(["a"], "tok")

        assert seen[0].method == "DELETE"
        assert seen[0].headers["Content-Type"] == "application/vnd.api+json"
        assert seen[0].url.params["countryCode"] == "DE"

    async def test_empty_items_make_no_calls(
        self, make_gateway: Callable[..., RequestGateway]
    ) -> None:
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(201)

        writer: ChunkedBatchWriter[str] = ChunkedBatchWriter(
            make_gateway(handler), "/favorites", _encode
        )

        result = await writer.write_all([], "tok")

        assert result.success is True
        assert calls == 0


class TestFirstFailureStops:
    """Test stop-at-first-failure semantics."""

    async def test_second_chunk_failure_stops_before_third(
        self, make_gateway: Callable[..., RequestGateway]
    ) -> None:
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            if calls == 2:
                return httpx.Response(
                    400,
                    json={
                        "errors": [
                            {"code": "INVALID_ID", "detail": "Track 42 does not exist"}
                        ]
                    },
                )
            return httpx.Response(201)

        writer: ChunkedBatchWriter[str] = ChunkedBatchWriter(
            make_gateway(handler), "/favorites", _encode
        )

        result = await writer.write_all(
            [str(i) for i in range(6)], "tok", chunk_size=2
        )

        assert calls == 2
        assert result.success is False
        assert result.chunks_written == 1
        assert result.items_written == 2
        assert result.error is not None
        assert result.error.status_code == 400
        assert result.error_detail == "(INVALID_ID) Track 42 does not exist"

    async def test_failure_with_plain_text_body_reports_raw_text(
        self, make_gateway: Callable[..., RequestGateway]
    ) -> None:
        writer: ChunkedBatchWriter[str] = ChunkedBatchWriter(
            make_gateway(lambda request: httpx.Response(502, text="Bad Gateway")),
            "/favorites",
            _encode,
        )

        result = await writer.write_all(["a"], "tok")

        assert result.success is False
        assert result.error_detail == "Bad Gateway"

    async def test_gateway_errors_propagate(
        self, make_gateway: Callable[..., RequestGateway]
    ) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("down", request=request)

        writer: ChunkedBatchWriter[str] = ChunkedBatchWriter(
            make_gateway(handler), "/favorites", _encode
        )

        with pytest.raises(NetworkError):
            await writer.write_all(["a"], "tok")
