"""Migration endpoint: validate options, allocate progress, spawn the run."""

import logging

from fastapi import APIRouter, Depends, status

from tunemigrate.api.dependencies import (
    get_migration_orchestrator,
    get_progress_store,
    get_run_registry,
    get_spotify_token,
    get_tidal_token,
)
from tunemigrate.api.schemas import MigrateRequestBody, RunAccepted
from tunemigrate.application.services.migration_service import MigrationOrchestrator
from tunemigrate.application.services.progress_tracker import ProgressStore
from tunemigrate.application.workers.migration_runner import (
    BackgroundRunRegistry,
    CancellationToken,
)
from tunemigrate.domain.value_objects import MigrationOptions, MigrationRequest

logger = logging.getLogger(__name__)

router = APIRouter()


# Hey future me - this answers 202 BEFORE any provider is contacted! Order:
# 1. options parsed (unknown / unsupported -> UnsupportedOptionError -> 400 plain text)
# 2. progress record allocated (store full -> ProgressAllocationError -> 500)
# 3. run spawned detached, its uuid returned for GET /progress
# Everything that goes wrong after step 3 only shows up in the progress text and logs.
@router.post(
    "/migrate",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=RunAccepted,
)
async def start_migration(
    body: MigrateRequestBody,
    source_token: str = Depends(get_spotify_token),
    destination_token: str = Depends(get_tidal_token),
    store: ProgressStore = Depends(get_progress_store),
    runs: BackgroundRunRegistry = Depends(get_run_registry),
    orchestrator: MigrationOrchestrator = Depends(get_migration_orchestrator),
) -> RunAccepted:
    """Start a migration run in the background."""
    options = MigrationOptions.from_mapping(body.options)
    request = MigrationRequest(
        options=options,
        source_token=source_token,
        destination_token=destination_token,
    )

    run_id, record = store.create()

    async def _run(token: CancellationToken) -> None:
        await orchestrator.run(request, record, token)

    runs.spawn(run_id, _run)
    logger.info(f"Accepted migration {run_id}: {request!r}")
    return RunAccepted(message="Migration started", uuid=run_id)
