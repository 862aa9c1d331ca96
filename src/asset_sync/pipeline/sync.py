import asyncio
from collections import OrderedDict
from typing import Literal

from pydantic import BaseModel, Field

from asset_sync.asset import AssetDescriptor
from asset_sync.asset_store.filesystem import FilesystemAssetStore
from asset_sync.config.factory import create_asset_store, create_fetcher, create_observer
from asset_sync.config.schema import AppConfig
from asset_sync.log_config import logger
from asset_sync.utils.timing import log_duration


class AssetEvent(BaseModel):
    action: Literal["download", "delete", "unpublish"]
    asset: AssetDescriptor
    group: list[AssetDescriptor] = Field(default_factory=list)


class FailedEvent(BaseModel):
    event: AssetEvent
    error: str
    error_type: str


class SyncReport(BaseModel):
    succeeded: list[AssetDescriptor] = Field(default_factory=list)
    failed: list[FailedEvent] = Field(default_factory=list)


class AssetSyncService:
    """
    Applies asset events to a store.

    Events of the same uid run one after another in input order, different uids
    run concurrently up to ``max_concurrency``.
    """

    def __init__(self, store: FilesystemAssetStore, max_concurrency: int = 8):
        self.store = store
        self.semaphore = asyncio.Semaphore(max_concurrency)

    async def apply(self, event: AssetEvent) -> AssetDescriptor:
        match event.action:
            case "download":
                return await self.store.download(event.asset)
            case "delete":
                return await self.store.delete([event.asset, *event.group])
            case "unpublish":
                return await self.store.unpublish(event.asset)
            case _:
                raise RuntimeError(f"Unreachable state in apply (action: {event.action})")

    async def run(self, events: list[AssetEvent]) -> SyncReport:
        chains: OrderedDict[str, list[AssetEvent]] = OrderedDict()
        for idx, event in enumerate(events):
            # assets without uid cannot be ordered against anything else
            key = event.asset.uid or f"__anonymous_{idx}"
            chains.setdefault(key, []).append(event)

        logger.info("Applying asset events", extra={"count": len(events), "assets": len(chains)})

        report = SyncReport()

        async def run_chain(chain: list[AssetEvent]) -> None:
            last_stored: AssetDescriptor | None = None
            async with self.semaphore:
                for event in chain:
                    if last_stored and event.action != "download" and not event.asset.internal_url:
                        event = event.model_copy(update={
                            "asset": event.asset.model_copy(update={"internal_url": last_stored.internal_url}),
                        })
                    try:
                        result = await self.apply(event)
                    except Exception as e:
                        logger.error("Asset event failed", extra={
                            "uid": event.asset.uid,
                            "action": event.action,
                            "error": str(e),
                        })
                        report.failed.append(FailedEvent(event=event, error=str(e), error_type=type(e).__name__))
                        continue

                    report.succeeded.append(result)
                    last_stored = result if event.action == "download" else None

        await asyncio.gather(*(run_chain(chain) for chain in chains.values()))
        logger.info("Asset events applied", extra={
            "succeeded": len(report.succeeded),
            "failed": len(report.failed),
        })
        return report


async def run_sync_pipeline(config: AppConfig, events: list[AssetEvent]) -> SyncReport:
    observer = create_observer(config.observer, config.asset_store.base_dir)

    async with create_fetcher(config.fetch) as fetcher:
        store = create_asset_store(config, fetcher=fetcher, observer=observer)
        service = AssetSyncService(store, max_concurrency=config.max_concurrency)

        async with log_duration("sync_assets", count=len(events)):
            return await service.run(events)
