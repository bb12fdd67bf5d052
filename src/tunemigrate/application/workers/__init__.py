"""Background run handling."""

from tunemigrate.application.workers.migration_runner import (
    BackgroundRun,
    BackgroundRunRegistry,
    CancellationToken,
)

__all__ = ["BackgroundRun", "BackgroundRunRegistry", "CancellationToken"]
