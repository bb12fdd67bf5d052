"""Migration orchestrator - sequences reads, ISRC matching and writes for one run.

Hey future me - this runs DETACHED. POST /migrate already answered 202 when we
get here, so the only ways a user learns about trouble are the progress text and
the logs. That's why every phase is best-effort:

    tracks phase fails   -> log it, put it in the progress text, go on with playlists
    one playlist fails   -> log it, go on with the next playlist
    anything at all      -> the record STILL reaches finished (finally block)

Phase order is fixed: tracks, then playlists. Options that have no mapping
(albums, artists) never get here, MigrationOptions.from_mapping rejects them
before the run is even created.
"""

import logging

from tunemigrate.application.services.progress_tracker import ProgressRecord
from tunemigrate.application.workers.migration_runner import CancellationToken
from tunemigrate.domain.entities import Playlist
from tunemigrate.domain.ports import IDestinationLibrary, ISourceLibrary
from tunemigrate.domain.value_objects import MigrationRequest
from tunemigrate.infrastructure.observability.logger_template import log_operation

logger = logging.getLogger(__name__)


class MigrationOrchestrator:
    """Moves liked tracks and playlists from a source to a destination library."""

    def __init__(
        self, source: ISourceLibrary, destination: IDestinationLibrary
    ) -> None:
        self.source = source
        self.destination = destination

    async def run(
        self,
        request: MigrationRequest,
        progress: ProgressRecord,
        cancel_token: CancellationToken | None = None,
    ) -> None:
        """Execute one migration run, driving the given progress record.

        Never raises for provider trouble; the record always ends up finished.
        """
        options = request.options
        run_context = {"run_id": progress.id}
        logger.info(
            f"Starting migration run {progress.id} with options {options.to_mapping()}"
        )
        progress.start("Starting migration")
        problems: list[str] = []

        try:
            if options.migrate_tracks and not self._stop_requested(cancel_token):
                try:
                    async with log_operation(logger, "migrate_tracks", **run_context):
                        if not await self.migrate_liked_tracks(request, progress):
                            problems.append("liked tracks")
                except Exception:
                    problems.append("liked tracks")

            if options.migrate_playlists and not self._stop_requested(cancel_token):
                try:
                    async with log_operation(
                        logger, "migrate_playlists", **run_context
                    ):
                        failed = await self.migrate_playlists(
                            request, progress, cancel_token
                        )
                    if failed:
                        problems.append(f"{len(failed)} playlist(s)")
                except Exception:
                    problems.append("playlists")
        finally:
            # Same terminal event either way, only the text tells them apart
            if self._stop_requested(cancel_token):
                progress.start("Migration stopped")
            elif problems:
                progress.start(f"Migration finished with errors ({', '.join(problems)})")
            else:
                progress.start("Migration finished")
            progress.finish()
            logger.info(f"Migration run {progress.id} finished")

    @staticmethod
    def _stop_requested(cancel_token: CancellationToken | None) -> bool:
        return cancel_token is not None and cancel_token.cancelled

    # =========================================================================
    # TRACKS
    # =========================================================================

    async def migrate_liked_tracks(
        self, request: MigrationRequest, progress: ProgressRecord
    ) -> bool:
        """Copy liked tracks, oldest first, so the destination keeps the add order.

        Returns:
            False if the favorites write stopped at a failing chunk
        """
        progress.start("Fetching liked tracks from Spotify")
        liked = await self.source.get_liked_tracks(request.source_token)
        # Source lists newest first, we want to write in original add order
        liked.reverse()

        progress.start("Matching liked tracks on Tidal", total=len(liked))
        resolution = await self.destination.resolve_tracks(
            liked, request.destination_token, on_lookup=progress.advance
        )
        for track in resolution.unmatched:
            logger.warning(
                f"Liked track '{track.title}' (ISRC {track.isrc or 'missing'}) "
                f"could not be matched and will be skipped"
            )

        if not resolution.matched:
            progress.start("No liked tracks to add")
            return True

        progress.start("Adding liked tracks to Tidal", total=len(resolution.matched))
        result = await self.destination.add_favorite_tracks(
            resolution.matched,
            request.destination_token,
            ordered=request.options.use_ordered_writes,
            on_chunk=progress.advance,
        )
        if not result.success:
            logger.error(
                f"Adding liked tracks stopped after {result.items_written} of "
                f"{len(resolution.matched)} tracks: {result.error_detail}"
            )
            progress.start(f"Adding liked tracks to Tidal failed: {result.error_detail}")
            return False

        logger.info(
            f"Added {result.items_written} liked tracks "
            f"({len(resolution.unmatched)} unmatched)"
        )
        progress.start("Adding liked tracks to Tidal (DONE)")
        return True

    # =========================================================================
    # PLAYLISTS
    # =========================================================================

    async def migrate_playlists(
        self,
        request: MigrationRequest,
        progress: ProgressRecord,
        cancel_token: CancellationToken | None = None,
    ) -> list[str]:
        """Recreate every source playlist at the destination, one after another.

        Returns:
            Names of the playlists that could not be migrated
        """
        progress.start("Fetching playlists from Spotify")
        playlists = await self.source.get_playlists(
            request.source_token,
            include_followed=request.options.include_followed_playlists,
        )
        logger.info(f"Migrating {len(playlists)} playlists")

        progress.start("Creating playlists in Tidal", total=len(playlists))
        failed: list[str] = []
        for playlist in playlists:
            if self._stop_requested(cancel_token):
                logger.info("Stop requested, skipping remaining playlists")
                break
            try:
                await self.migrate_playlist(playlist, request)
            except Exception as e:
                # One broken playlist must not take the others down
                logger.error(
                    f"Failed to migrate playlist '{playlist.name}': {e}", exc_info=True
                )
                failed.append(playlist.name)
            progress.advance()

        if failed:
            progress.start(
                f"Creating playlists in Tidal failed: {len(failed)} of "
                f"{len(playlists)} could not be migrated ({', '.join(failed)})"
            )
        else:
            progress.start("Creating playlists in Tidal (DONE)")
        return failed

    async def migrate_playlist(
        self, playlist: Playlist, request: MigrationRequest
    ) -> None:
        """Create one destination playlist and fill it with the matched tracks.

        Raises:
            ProviderAPIError: Playlist creation failed (nothing gets populated)
        """
        playlist_id = await self.destination.create_playlist(
            playlist, request.destination_token
        )
        resolution = await self.destination.resolve_tracks(
            playlist.tracks, request.destination_token
        )
        if resolution.unmatched:
            logger.warning(
                f"Playlist '{playlist.name}': {len(resolution.unmatched)} of "
                f"{len(playlist.tracks)} tracks could not be matched"
            )
        if not resolution.matched:
            return

        result = await self.destination.add_playlist_tracks(
            playlist_id, resolution.matched, request.destination_token
        )
        if not result.success:
            raise result.error or RuntimeError(
                f"Adding tracks to playlist '{playlist.name}' failed"
            )
        logger.info(
            f"Playlist '{playlist.name}' migrated with {result.items_written} tracks"
        )
