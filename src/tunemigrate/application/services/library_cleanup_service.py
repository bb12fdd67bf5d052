"""Wipe helpers for the destination library.

Hey future me - these exist for the "start over" buttons: after a botched test
migration the user wants an empty Tidal library again. Both run detached like a
migration (same runner, same progress stream), and both ALWAYS finish the record.
"""

import logging

from tunemigrate.application.services.progress_tracker import ProgressRecord
from tunemigrate.application.workers.migration_runner import CancellationToken
from tunemigrate.domain.ports import IDestinationLibrary
from tunemigrate.infrastructure.observability.logger_template import log_operation

logger = logging.getLogger(__name__)


class LibraryCleanupService:
    """Deletes favorites or owned playlists from the destination."""

    def __init__(self, destination: IDestinationLibrary) -> None:
        self.destination = destination

    async def delete_all_favorites(
        self,
        access_token: str,
        progress: ProgressRecord,
        cancel_token: CancellationToken | None = None,
    ) -> None:
        """Remove every favorite track of the token's owner."""
        try:
            async with log_operation(logger, "delete_favorites", run_id=progress.id):
                progress.start("Fetching liked tracks from Tidal")
                favorites = await self.destination.get_favorite_tracks(access_token)
                if not favorites:
                    progress.start("No liked tracks to delete")
                    return
                if cancel_token is not None and cancel_token.cancelled:
                    progress.start("Deleting liked tracks from Tidal stopped")
                    return

                progress.start("Deleting liked tracks from Tidal", total=len(favorites))
                result = await self.destination.remove_favorite_tracks(
                    favorites, access_token, on_chunk=progress.advance
                )
                if result.success:
                    progress.start("Deleting liked tracks from Tidal (DONE)")
                else:
                    progress.start(
                        f"Deleting liked tracks from Tidal failed: {result.error_detail}"
                    )
        except Exception as e:
            progress.start(f"Deleting liked tracks from Tidal failed: {e}")
        finally:
            progress.finish()

    async def delete_all_playlists(
        self,
        access_token: str,
        progress: ProgressRecord,
        cancel_token: CancellationToken | None = None,
    ) -> None:
        """Delete every playlist owned by the token's owner, one by one."""
        try:
            async with log_operation(logger, "delete_playlists", run_id=progress.id):
                progress.start("Fetching playlists from Tidal")
                playlists = await self.destination.get_own_playlists(access_token)

                progress.start("Deleting playlists", total=len(playlists))
                failed = 0
                for playlist in playlists:
                    if cancel_token is not None and cancel_token.cancelled:
                        break
                    try:
                        await self.destination.delete_playlist(
                            playlist.id or "", access_token
                        )
                    except Exception as e:
                        logger.error(f"Failed to delete playlist '{playlist.name}': {e}")
                        failed += 1
                    progress.advance()

                if failed:
                    progress.start(f"Deleting playlists failed for {failed} playlist(s)")
                else:
                    progress.start("Deleting playlists (DONE)")
        except Exception as e:
            progress.start(f"Deleting playlists failed: {e}")
        finally:
            progress.finish()
