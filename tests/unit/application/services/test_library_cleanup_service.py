"""Tests for LibraryCleanupService against the in-memory Tidal."""

from collections.abc import Callable

import httpx
import pytest

from tunemigrate.application.services.library_cleanup_service import (
    LibraryCleanupService,
)
from tunemigrate.application.services.progress_tracker import ProgressStore
from tunemigrate.application.workers.migration_runner import CancellationToken
from tunemigrate.config import TidalSettings
from tunemigrate.infrastructure.integrations.request_gateway import RequestGateway
from tunemigrate.infrastructure.integrations.tidal_client import TidalClient


@pytest.fixture
def service(
    make_gateway: Callable[..., RequestGateway],
    tidal_settings: TidalSettings,
    fake_tidal,
) -> LibraryCleanupService:
    return LibraryCleanupService(
        TidalClient(make_gateway(fake_tidal.handler), tidal_settings)
    )


class TestDeleteAllFavorites:
    async def test_removes_everything_and_finishes(
        self, service: LibraryCleanupService, fake_tidal
    ) -> None:
        fake_tidal.favorites = [f"t{i}" for i in range(25)]
        _, progress = ProgressStore().create()

        await service.delete_all_favorites("tok", progress)

        assert fake_tidal.favorites == []
        assert progress.finished is True
        assert progress.text == "Deleting liked tracks from Tidal (DONE)"

    async def test_empty_collection(
        self, service: LibraryCleanupService
    ) -> None:
        _, progress = ProgressStore().create()

        await service.delete_all_favorites("tok", progress)

        assert progress.text == "No liked tracks to delete"
        assert progress.finished is True

    async def test_stop_requested_before_write_leaves_favorites(
        self, service: LibraryCleanupService, fake_tidal
    ) -> None:
        fake_tidal.favorites = ["t1", "t2"]
        token = CancellationToken()
        token.cancel()
        _, progress = ProgressStore().create()

        await service.delete_all_favorites("tok", progress, cancel_token=token)

        assert fake_tidal.favorites == ["t1", "t2"]
        assert not any(r.method == "DELETE" for r in fake_tidal.requests)
        assert progress.text == "Deleting liked tracks from Tidal stopped"
        assert progress.finished is True


class TestDeleteAllPlaylists:
    async def test_deletes_owned_playlists(
        self, service: LibraryCleanupService, fake_tidal
    ) -> None:
        fake_tidal.playlists = {"pl-1": {"name": "A"}, "pl-2": {"name": "B"}}
        _, progress = ProgressStore().create()

        await service.delete_all_playlists("tok", progress)

        assert fake_tidal.playlists == {}
        assert progress.snapshot() == {"text": "Deleting playlists (DONE)"}

    async def test_listing_failure_still_finishes(
        self,
        make_gateway: Callable[..., RequestGateway],
        tidal_settings: TidalSettings,
    ) -> None:
        service = LibraryCleanupService(
            TidalClient(
                make_gateway(lambda request: httpx.Response(503, text="maintenance")),
                tidal_settings,
            )
        )
        _, progress = ProgressStore().create()

        await service.delete_all_playlists("tok", progress)

        assert progress.finished is True
        assert progress.text.startswith("Deleting playlists failed")
