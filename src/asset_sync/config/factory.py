import importlib

from typing import Callable, Any

from asset_sync.config.schema import AppConfig, FetchConfig, ObserverConfig
from asset_sync.asset_store.types import AssetObserver, RemoteFetcher
from asset_sync.asset_store.filesystem import FilesystemAssetStore
from asset_sync.pattern.locale import LocaleUrlMapper


class Registry:
    """Maps a config type name to a class whose module is imported on first use."""

    def factory(self, module_path: str, class_name: str) -> Callable[[], Any]:
        return lambda: getattr(importlib.import_module(module_path), class_name)


registry = Registry()

FETCHER_MAPPING = {
    "aiohttp": registry.factory("asset_sync.asset_store.fetcher", "AiohttpFetcher"),
}

OBSERVER_MAPPING = {
    "logging": registry.factory("asset_sync.asset_store.observer", "LoggingObserver"),
    "s3": registry.factory("asset_sync.asset_store.observer", "S3MirrorObserver"),
}


def create_fetcher(config: FetchConfig) -> RemoteFetcher:
    cls = FETCHER_MAPPING.get(config.type)
    if not cls:
        raise ValueError(f"Unknown fetcher type: {config.type}")
    return cls()(config)


def create_observer(config: ObserverConfig, base_dir: str) -> AssetObserver | None:
    if config.type == "none":
        return None

    cls = OBSERVER_MAPPING.get(config.type)
    if not cls:
        raise ValueError(f"Unknown observer type: {config.type}")

    if config.type == "s3":
        if config.s3 is None:
            raise ValueError("Observer type 's3' requires an 's3' section")
        return cls()(config.s3, base_dir)
    return cls()()


def create_asset_store(
    config: AppConfig,
    fetcher: RemoteFetcher,
    observer: AssetObserver | None = None,
) -> FilesystemAssetStore:
    return FilesystemAssetStore(
        config.asset_store,
        fetcher=fetcher,
        locale_mapper=LocaleUrlMapper(config.locales),
        observer=observer,
    )


def load_config(data: dict | None) -> AppConfig:
    return AppConfig.model_validate(data or {})
