from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from asset_sync.constants import (
    DEFAULT_BASE_DIR,
    DEFAULT_DIR_MODE,
    DEFAULT_LOCALES,
    DEFAULT_PATTERN,
)


class LayoutStrategy(str, Enum):
    # placeholders only, literal pattern segments are not written to disk
    LEGACY_FLAT = "legacy_flat"
    # literal pattern segments kept in place
    PREFIXED_V2 = "prefixed_v2"


class LocaleConfig(BaseModel):
    code: str
    relative_url_prefix: str = "/"


class AssetStoreConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    base_dir: str = Field(default=DEFAULT_BASE_DIR, alias="baseDir")
    pattern: str = DEFAULT_PATTERN
    asset_folder_prefix_key: str | None = Field(default=None, alias="assetFolderPrefixKey")
    layout: LayoutStrategy = LayoutStrategy.LEGACY_FLAT
    skip_existing: bool = True
    atomic_writes: bool = True
    dir_mode: int = DEFAULT_DIR_MODE


class FetchConfig(BaseModel):
    type: Literal["aiohttp"] = "aiohttp"
    max_connections: int = 8
    timeout: float | None = None


class S3MirrorConfig(BaseModel):
    bucket: str
    region: str
    key_prefix: str = ""
    endpoint_url: str | None = None


class ObserverConfig(BaseModel):
    type: Literal["none", "logging", "s3"] = "none"
    s3: S3MirrorConfig | None = None


class AppConfig(BaseModel):
    locales: list[LocaleConfig] = Field(
        default_factory=lambda: [LocaleConfig(**loc) for loc in DEFAULT_LOCALES]
    )
    asset_store: AssetStoreConfig = Field(default_factory=AssetStoreConfig)
    fetch: FetchConfig = Field(default_factory=FetchConfig)
    observer: ObserverConfig = Field(default_factory=ObserverConfig)
    max_concurrency: int = 8
