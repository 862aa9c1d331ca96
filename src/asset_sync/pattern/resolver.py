from pathlib import Path, PurePosixPath
from typing import NamedTuple

from asset_sync.asset import AssetDescriptor
from asset_sync.config.schema import LayoutStrategy
from asset_sync.constants import CDN_URL_PATTERN, PATTERN_SEPARATOR
from asset_sync.pattern.compiler import LiteralSegment, PathPattern
from asset_sync.log_config import logger


class Resolved(NamedTuple):
    asset: AssetDescriptor
    components: tuple[str, ...]

    @property
    def relative_path(self) -> str:
        return PurePosixPath(self.asset.locale, *self.components).as_posix()

    def file_path(self, base_dir: str | Path) -> Path:
        return Path(base_dir, self.asset.locale, *self.components)

    def folder_path(self, base_dir: str | Path) -> Path:
        return self.file_path(base_dir).parent


class MissingPlaceholder(NamedTuple):
    key: str
    uid: str | None


class UnsafeSegment(NamedTuple):
    key: str
    value: str
    uid: str | None


ResolveResult = Resolved | MissingPlaceholder | UnsafeSegment


def extract_cdn_metadata(asset: AssetDescriptor) -> AssetDescriptor:
    """
    Returns a copy of the asset enriched with the api version, api key and
    download id embedded in a CDN url. Other urls are returned unchanged.
    """
    if not asset.url:
        return asset

    match = CDN_URL_PATTERN.search(asset.url)
    if not match:
        return asset

    update = {}
    if match.group(2):
        update["api_version"] = match.group(2)
    if match.group(3):
        update["api_key"] = match.group(3)
    if match.group(4):
        update["cdn_download_id"] = match.group(4)
    return asset.model_copy(update=update)


def _is_safe_segment(value: str) -> bool:
    return value not in (".", "..") and "/" not in value and "\\" not in value


class PathResolver:
    """
    Turns a compiled pattern plus asset metadata into path components.
    """

    def __init__(
        self,
        pattern: PathPattern,
        layout: LayoutStrategy = LayoutStrategy.LEGACY_FLAT,
        prefix: str | None = None,
    ):
        self.pattern = pattern
        self.layout = layout
        self.prefix_parts = tuple(p for p in (prefix or "").split(PATTERN_SEPARATOR) if p)

    def resolve(self, asset: AssetDescriptor) -> ResolveResult:
        if not asset.locale:
            return MissingPlaceholder(key="locale", uid=asset.uid)

        enriched = extract_cdn_metadata(asset)
        logger.debug("Resolving asset path", extra={
            "uid": asset.uid,
            "pattern": self.pattern.raw,
            "keys": self.pattern.keys,
        })

        components: list[str] = list(self.prefix_parts)
        for segment in self.pattern.segments:
            if isinstance(segment, LiteralSegment):
                if self.layout is LayoutStrategy.PREFIXED_V2:
                    components.append(segment.text)
                continue

            value = enriched.lookup(segment.key)
            if value is None or value == "":
                return MissingPlaceholder(key=segment.key, uid=asset.uid)

            value = str(value)
            if not _is_safe_segment(value):
                return UnsafeSegment(key=segment.key, value=value, uid=asset.uid)
            components.append(value)

        return Resolved(asset=enriched, components=tuple(components))
