"""Progress stream endpoint (server-sent events)."""

import json
import logging

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse
from sse_starlette.sse import EventSourceResponse

from tunemigrate.api.dependencies import get_progress_publisher
from tunemigrate.application.services.progress_stream import ProgressStreamPublisher

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/progress", response_model=None)
async def progress_events(
    request: Request,
    uuid: str | None = Query(default=None),
    publisher: ProgressStreamPublisher = Depends(get_progress_publisher),
) -> EventSourceResponse | JSONResponse:
    """Stream a run's progress until it finishes.

    Every event is an unnamed SSE message (the browser uses onmessage) whose data is
    {"text": ..., "progressBar"?: {"current": ..., "total": ...}}. The run's final text is
    always sent, then {"status": "done"}, after which the stream closes and the uuid is gone.

    Example JS client:
    ```javascript
    const source = new EventSource(`/progress?uuid=${uuid}`);
    source.onmessage = (event) => {
        const { text, progressBar, status } = JSON.parse(event.data);
        if (status === "done") source.close();
    };
    ```
    """
    if not uuid:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"message": "UUID is required"},
        )

    # Unknown ids raise EntityNotFoundException here -> 404 before any stream opens
    events = publisher.open(uuid)

    async def event_generator():
        async for state in events:
            if await request.is_disconnected():
                logger.debug(f"Progress client for {uuid} disconnected")
                break
            yield {"data": json.dumps(state)}

    return EventSourceResponse(event_generator())
