"""Generic cursor-pagination reader.

Hey future me - providers disagree on how "next page" looks:
- Spotify puts an ABSOLUTE url into body["next"]
- Tidal puts a RELATIVE link into body["links"]["next"] (gateway adds the base url)
Instead of subclassing per provider, callers hand in two tiny extraction
functions: items_of(page) and next_of(page). That's the only axis that varies.

All-or-nothing: if ANY page fails, the whole walk fails and the items collected
so far are thrown away. Callers never see half a library.
"""

import logging
from collections.abc import Callable
from typing import Any, TypeVar

from tunemigrate.infrastructure.integrations.provider_errors import ensure_success
from tunemigrate.infrastructure.integrations.request_gateway import (
    QueryParams,
    RequestGateway,
)

logger = logging.getLogger(__name__)

Item = TypeVar("Item")

ItemsOf = Callable[[dict[str, Any]], list[Item]]
NextOf = Callable[[dict[str, Any]], str | None]
PageCallback = Callable[[int, int], None]


class PaginationWalker:
    """Follows next-page cursors through a RequestGateway."""

    # Guards against providers that keep handing out the same cursor
    MAX_PAGES = 10_000

    def __init__(self, gateway: RequestGateway) -> None:
        self.gateway = gateway

    async def collect(
        self,
        start_path: str,
        token: str,
        items_of: ItemsOf[Item],
        next_of: NextOf,
        query: QueryParams | None = None,
        on_page: PageCallback | None = None,
    ) -> list[Item]:
        """Materialize the full ordered collection behind start_path.

        Args:
            start_path: First page (relative path or absolute URL)
            token: Bearer token
            items_of: Extracts the page's items
            next_of: Extracts the next page link, None/"" on the last page
            query: Query parameters for the FIRST page only
            on_page: Called with (page_number, items_collected_so_far)

        Returns:
            All items in provider order

        Raises:
            ProviderAPIError: A page came back non-2xx
            NetworkError / RequestTimeoutError: From the gateway
        """
        collected: list[Item] = []
        path: str | None = start_path
        page_query = query
        pages = 0

        while path:
            if pages >= self.MAX_PAGES:
                raise RuntimeError(
                    f"{self.gateway.name}: pagination of {start_path} exceeded "
                    f"{self.MAX_PAGES} pages"
                )
            response = await self.gateway.send("GET", path, token, query=page_query)
            ensure_success(self.gateway.name, response)
            page = response.json()
            pages += 1

            collected.extend(items_of(page))
            if on_page is not None:
                on_page(pages, len(collected))

            path = next_of(page)
            page_query = None

        logger.debug(
            f"{self.gateway.name}: collected {len(collected)} items from "
            f"{start_path} in {pages} page(s)"
        )
        return collected
