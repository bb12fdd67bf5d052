"""Provider integrations: request gateway, pagination, batch writing, clients."""

from tunemigrate.infrastructure.integrations.batch_writer import (
    ChunkedBatchWriter,
    chunked,
)
from tunemigrate.infrastructure.integrations.http_pool import HttpClientPool
from tunemigrate.infrastructure.integrations.pagination import PaginationWalker
from tunemigrate.infrastructure.integrations.request_gateway import RequestGateway
from tunemigrate.infrastructure.integrations.spotify_client import SpotifyClient
from tunemigrate.infrastructure.integrations.tidal_client import TidalClient

__all__ = [
    "ChunkedBatchWriter",
    "HttpClientPool",
    "PaginationWalker",
    "RequestGateway",
    "SpotifyClient",
    "TidalClient",
    "chunked",
]
