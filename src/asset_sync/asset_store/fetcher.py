import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator

import aiohttp
from aiohttp import ClientError

from asset_sync.asset_store.errors import TransportError
from asset_sync.config.schema import FetchConfig
from asset_sync.log_config import logger

DEFAULT_CHUNK_SIZE = 64 * 1024


class AiohttpResponse:
    def __init__(self, resp: aiohttp.ClientResponse, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self._resp = resp
        self.status = resp.status
        self.headers = resp.headers
        self.chunk_size = chunk_size

    async def iter_chunks(self) -> AsyncIterator[bytes]:
        async for chunk in self._resp.content.iter_chunked(self.chunk_size):
            yield chunk


class AiohttpFetcher:
    """
    Streams asset bytes over a shared aiohttp session.

    Use as ``async with AiohttpFetcher(cfg) as fetcher: ...``.
    """

    def __init__(self, cfg: FetchConfig):
        self.config = cfg
        self.session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> "AiohttpFetcher":
        connector = aiohttp.TCPConnector(limit=self.config.max_connections)
        timeout = aiohttp.ClientTimeout(total=self.config.timeout)
        self.session = aiohttp.ClientSession(connector=connector, timeout=timeout)
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        if self.session is not None:
            await self.session.close()
            self.session = None

    @asynccontextmanager
    async def fetch(self, url: str) -> AsyncIterator[AiohttpResponse]:
        if self.session is None:
            raise RuntimeError("AiohttpFetcher is not open, use it as an async context manager")

        logger.debug("Fetching asset", extra={"url": url})
        try:
            async with self.session.get(url) as resp:
                yield AiohttpResponse(resp)
        except (ClientError, asyncio.TimeoutError) as e:
            raise TransportError(url, f"{type(e).__name__}: {e}") from e
