"""Application services."""

from tunemigrate.application.services.library_cleanup_service import (
    LibraryCleanupService,
)
from tunemigrate.application.services.migration_service import MigrationOrchestrator
from tunemigrate.application.services.progress_stream import ProgressStreamPublisher
from tunemigrate.application.services.progress_tracker import (
    ProgressBar,
    ProgressRecord,
    ProgressState,
    ProgressStore,
)

__all__ = [
    "LibraryCleanupService",
    "MigrationOrchestrator",
    "ProgressBar",
    "ProgressRecord",
    "ProgressState",
    "ProgressStore",
    "ProgressStreamPublisher",
]
