"""Turn non-2xx provider responses into ProviderAPIError.

The two providers report errors differently:
- Tidal (JSON:API):  {"errors": [{"code": "...", "detail": "..."}]}
- Spotify:           {"error": {"status": 404, "message": "..."}}
Anything else (HTML error pages, empty bodies) ends up as raw text.
"""

import logging
from typing import Any

import httpx

from tunemigrate.domain.exceptions import ProviderAPIError

logger = logging.getLogger(__name__)

MAX_RAW_DETAIL_LENGTH = 200


def parse_error_details(payload: Any) -> list[str]:
    """Extract readable error entries from a decoded error body."""
    if not isinstance(payload, dict):
        return []

    errors = payload.get("errors")
    if isinstance(errors, list):
        details = []
        for error in errors:
            if not isinstance(error, dict):
                continue
            code = error.get("code") or error.get("status")
            detail = error.get("detail") or error.get("title") or "unknown error"
            details.append(f"({code}) {detail}" if code else str(detail))
        return details

    error = payload.get("error")
    if isinstance(error, dict):
        status = error.get("status")
        message = error.get("message") or "unknown error"
        return [f"({status}) {message}" if status else str(message)]
    if isinstance(error, str):
        description = payload.get("error_description")
        return [f"{error}: {description}" if description else error]

    return []


def provider_error_from_response(
    provider: str, response: httpx.Response
) -> ProviderAPIError:
    """Build a ProviderAPIError for a non-2xx response."""
    try:
        details = parse_error_details(response.json())
    except ValueError:
        details = []
    if not details and response.text:
        details = [response.text[:MAX_RAW_DETAIL_LENGTH]]
    return ProviderAPIError(provider, response.status_code, details)


def ensure_success(provider: str, response: httpx.Response) -> httpx.Response:
    """Return the response if 2xx, raise ProviderAPIError otherwise."""
    if response.is_success:
        return response
    error = provider_error_from_response(provider, response)
    for detail in error.details:
        logger.debug(f"{provider} error detail: {detail}")
    raise error
