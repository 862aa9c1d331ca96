"""Shared fixtures for the asset store test suite."""

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path

import pytest

from asset_sync.asset import AssetDescriptor
from asset_sync.config.schema import AssetStoreConfig

SAMPLE_UID = "u1"
SAMPLE_FILENAME = "logo.png"
SAMPLE_URL = "https://host/logo.png"
SAMPLE_BODY = b"\x89PNG fake image bytes" * 64


class FakeResponse:
    def __init__(
        self,
        status: int = 200,
        body: bytes = SAMPLE_BODY,
        headers: dict | None = None,
        error: Exception | None = None,
        chunk_size: int = 128,
    ):
        self.status = status
        self.body = body
        self.headers = headers or {}
        self.error = error
        self.chunk_size = chunk_size

    async def iter_chunks(self):
        for i in range(0, len(self.body), self.chunk_size):
            yield self.body[i:i + self.chunk_size]
        if self.error:
            raise self.error


class StalledResponse(FakeResponse):
    """Sends one chunk and then never finishes the body."""

    async def iter_chunks(self):
        yield self.body[:self.chunk_size]
        await asyncio.sleep(10)


class FakeFetcher:
    """In-memory RemoteFetcher keyed by url."""

    def __init__(self, responses: dict | None = None, default: FakeResponse | Exception | None = None):
        self.responses = responses or {}
        self.default = default if default is not None else FakeResponse()
        self.calls: list[str] = []

    @asynccontextmanager
    async def fetch(self, url: str):
        self.calls.append(url)
        resp = self.responses.get(url, self.default)
        if isinstance(resp, Exception):
            raise resp
        yield resp


class RecordingObserver:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.stored: list[tuple[AssetDescriptor, Path]] = []
        self.removed: list[tuple[AssetDescriptor, Path]] = []

    async def on_stored(self, asset, path):
        if self.fail:
            raise RuntimeError("mirror unavailable")
        self.stored.append((asset, path))

    async def on_removed(self, asset, path):
        if self.fail:
            raise RuntimeError("mirror unavailable")
        self.removed.append((asset, path))


@pytest.fixture
def base_dir(tmp_path: Path) -> Path:
    return tmp_path / "contents"


@pytest.fixture
def store_config(base_dir: Path) -> AssetStoreConfig:
    return AssetStoreConfig(base_dir=str(base_dir), pattern="/:uid/:filename")


@pytest.fixture
def asset() -> AssetDescriptor:
    return AssetDescriptor(uid=SAMPLE_UID, filename=SAMPLE_FILENAME, locale="en-us", url=SAMPLE_URL)


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher()
