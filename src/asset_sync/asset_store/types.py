from contextlib import AbstractAsyncContextManager
from pathlib import Path
from typing import AsyncIterator, Mapping, Protocol

from asset_sync.asset import AssetDescriptor


class FetchResponse(Protocol):
    status: int
    headers: Mapping[str, str]

    def iter_chunks(self) -> AsyncIterator[bytes]:
        """Yield the response body in chunks."""
        ...


class RemoteFetcher(Protocol):
    """
    Interface for the transport used to download asset bytes.
    """

    def fetch(self, url: str) -> AbstractAsyncContextManager[FetchResponse]:
        """
        Open a streamed GET request.

        Transport failures are raised as TransportError, non-200 statuses are
        left for the caller to inspect.
        """
        ...


class AssetObserver(Protocol):
    """
    Optional hook notified after an asset is written or removed.
    """

    async def on_stored(self, asset: AssetDescriptor, path: Path) -> None:
        ...

    async def on_removed(self, asset: AssetDescriptor, path: Path) -> None:
        ...
