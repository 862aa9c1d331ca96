import asyncio
import os
import secrets
import shutil
from pathlib import Path, PurePosixPath
from typing import AsyncIterator, Awaitable, Callable

from asset_sync.asset import AssetDescriptor, AssetState
from asset_sync.asset_store.errors import (
    AssetValidationError,
    FilesystemOperationFailed,
    MissingPlaceholderError,
    RemoteFetchFailed,
    TransportError,
    UnsafePathError,
)
from asset_sync.asset_store.types import AssetObserver, FetchResponse, RemoteFetcher
from asset_sync.asset_store.utils import filename_from_content_disposition, get_header
from asset_sync.config.schema import AssetStoreConfig
from asset_sync.constants import TMP_FILE_SUFFIX
from asset_sync.pattern.compiler import compile_store_config
from asset_sync.pattern.locale import LocaleUrlMapper
from asset_sync.pattern.resolver import (
    MissingPlaceholder,
    PathResolver,
    Resolved,
    ResolveResult,
    UnsafeSegment,
)
from asset_sync.log_config import logger


def _validate_publish(asset: AssetDescriptor) -> None:
    if not asset.url:
        raise AssetValidationError(f"Asset {asset.uid} has no url")
    if not asset.locale:
        raise AssetValidationError(f"Asset {asset.uid} has no locale")


def _validate_unpublish(asset: AssetDescriptor) -> None:
    if not asset.locale and not asset.internal_url:
        raise AssetValidationError(f"Asset {asset.uid} has neither locale nor internal_url")


async def _guarded_chunks(resp: FetchResponse, url: str) -> AsyncIterator[bytes]:
    try:
        async for chunk in resp.iter_chunks():
            yield chunk
    except TransportError:
        raise
    except Exception as e:
        # connection resets and read timeouts are OSError subclasses too
        raise TransportError(url, f"{type(e).__name__}: {e}") from e


async def _fs_write_call(target: Path, func: Callable, *args):
    try:
        return await asyncio.to_thread(func, *args)
    except OSError as e:
        raise FilesystemOperationFailed("write", str(target), e) from e


class FilesystemAssetStore:
    """
    Downloads assets onto the local filesystem and removes them again.

    The pattern is compiled once at construction. The store keeps no other state,
    so operations on different assets can run concurrently; operations on the
    same asset must be serialized by the caller.
    """

    def __init__(
        self,
        cfg: AssetStoreConfig,
        fetcher: RemoteFetcher,
        locale_mapper: LocaleUrlMapper | None = None,
        observer: AssetObserver | None = None,
    ):
        self.config = compile_store_config(cfg)
        self.resolver = PathResolver(
            self.config.pattern,
            layout=cfg.layout,
            prefix=cfg.asset_folder_prefix_key,
        )
        self.fetcher = fetcher
        self.locale_mapper = locale_mapper or LocaleUrlMapper()
        self.observer = observer

    @property
    def base_dir(self) -> Path:
        return Path(self.config.settings.base_dir)

    def resolve(self, asset: AssetDescriptor) -> Resolved:
        return self._unwrap(self.resolver.resolve(asset))

    def _unwrap(self, result: ResolveResult) -> Resolved:
        match result:
            case Resolved() as resolved:
                return resolved
            case MissingPlaceholder(key=key, uid=uid):
                raise MissingPlaceholderError(key, uid)
            case UnsafeSegment(key=key, value=value, uid=uid):
                raise UnsafePathError(key, value, uid)

    def with_urls(self, resolved: Resolved) -> AssetDescriptor:
        internal_url = resolved.relative_path
        return resolved.asset.model_copy(update={
            "internal_url": internal_url,
            "public_url": self.locale_mapper.public_url(internal_url),
        })

    async def download(self, asset: AssetDescriptor) -> AssetDescriptor:
        logger.info("Asset download invoked", extra={"uid": asset.uid, "url": asset.url})
        _validate_publish(asset)
        # fail on a bad pattern before touching the network; an attachment only
        # gets its filename from the response headers
        result = self.resolver.resolve(asset)
        deferred = isinstance(result, MissingPlaceholder) and result.key == "filename" and bool(asset.download_id)
        if not deferred:
            self._unwrap(result)

        self._log_state(asset, AssetState.DOWNLOADING)
        try:
            stored = await self._download(asset)
        except Exception:
            self._log_state(asset, AssetState.FAILED)
            logger.exception("Asset download failed", extra={"uid": asset.uid, "url": asset.url})
            raise

        self._log_state(stored, AssetState.STORED)
        return stored

    async def _download(self, asset: AssetDescriptor) -> AssetDescriptor:
        try:
            async with self.fetcher.fetch(asset.url) as resp:
                if resp.status != 200:
                    raise RemoteFetchFailed(asset.uid, asset.url, status=resp.status)

                filename = filename_from_content_disposition(get_header(resp.headers, "Content-Disposition"))
                if filename:
                    asset = asset.model_copy(update={"filename": filename})

                resolved = self.resolve(asset)
                file_path = resolved.file_path(self.base_dir)

                if self.config.settings.skip_existing and await asyncio.to_thread(file_path.exists):
                    logger.info("Skipping asset download, file already present", extra={
                        "uid": asset.uid,
                        "path": str(file_path),
                    })
                    return self.with_urls(resolved)

                await self._ensure_folder(file_path.parent)
                await self._write(resp, file_path, asset.url)
        except TransportError as e:
            raise RemoteFetchFailed(asset.uid, asset.url, reason=e.reason) from e

        stored = self.with_urls(resolved)
        if self.observer:
            await self._notify(self.observer.on_stored, stored, file_path)
        return stored

    async def delete(self, assets: list[AssetDescriptor]) -> AssetDescriptor:
        """
        Removes the folder holding the first asset of the group, including every
        other file stored next to it.
        """
        if not assets:
            raise AssetValidationError("Asset deletion requires at least one asset")
        asset = assets[0]
        logger.info("Asset deletion invoked", extra={"uid": asset.uid, "count": len(assets)})
        _validate_unpublish(asset)

        folder = self._stored_file(asset).parent
        relative = folder.relative_to(self.base_dir)
        # base/<locale> or base itself would wipe unrelated assets
        if len(relative.parts) < 2 and await asyncio.to_thread(os.path.lexists, folder):
            raise AssetValidationError(f"Refusing to remove {folder}, it is not an asset folder")

        await self._remove(asset, folder)
        return asset

    async def unpublish(self, asset: AssetDescriptor) -> AssetDescriptor:
        logger.info("Asset unpublish invoked", extra={"uid": asset.uid})
        _validate_unpublish(asset)

        await self._remove(asset, self._stored_file(asset))
        return asset

    def _stored_file(self, asset: AssetDescriptor) -> Path:
        if not asset.internal_url:
            return self.resolve(asset).file_path(self.base_dir)

        parts = PurePosixPath(asset.internal_url).parts
        if not parts or parts[0] == "/" or ".." in parts:
            raise AssetValidationError(f"Invalid internal_url '{asset.internal_url}' on asset {asset.uid}")
        return self.base_dir.joinpath(*parts)

    async def _ensure_folder(self, folder: Path) -> None:
        if await asyncio.to_thread(folder.is_dir):
            return
        try:
            await asyncio.to_thread(
                folder.mkdir,
                mode=self.config.settings.dir_mode,
                parents=True,
                exist_ok=True,
            )
        except OSError as e:
            raise FilesystemOperationFailed("mkdir", str(folder), e) from e

    async def _write(self, resp: FetchResponse, target: Path, url: str) -> None:
        if self.config.settings.atomic_writes:
            write_path = target.with_name(f".{target.name}.{secrets.token_hex(8)}{TMP_FILE_SUFFIX}")
        else:
            write_path = target

        completed = False
        try:
            fh = await _fs_write_call(target, open, write_path, "wb")
            try:
                async for chunk in _guarded_chunks(resp, url):
                    if chunk:
                        await _fs_write_call(target, fh.write, chunk)
            finally:
                try:
                    fh.close()
                except OSError as e:
                    raise FilesystemOperationFailed("write", str(target), e) from e

            if write_path != target:
                await _fs_write_call(target, os.replace, write_path, target)
            completed = True
        finally:
            if not completed:
                # never leave a truncated file where a later download would skip it;
                # synchronous so it also runs when the task is being cancelled
                write_path.unlink(missing_ok=True)

        logger.debug("Asset written", extra={"path": str(target)})

    async def _remove(self, asset: AssetDescriptor, path: Path) -> None:
        self._log_state(asset, AssetState.REMOVING)

        if not await asyncio.to_thread(os.path.lexists, path):
            logger.info(f"{path} did not exist", extra={"uid": asset.uid})
            self._log_state(asset, AssetState.ABSENT)
            return

        try:
            if await asyncio.to_thread(path.is_dir):
                await asyncio.to_thread(shutil.rmtree, path)
            else:
                await asyncio.to_thread(path.unlink, missing_ok=True)
        except FileNotFoundError:
            # removed concurrently, the goal state is reached anyway
            pass
        except OSError as e:
            logger.error(f"Error while removing {path}", extra={"uid": asset.uid, "error": str(e)})
            raise FilesystemOperationFailed("remove", str(path), e) from e

        logger.info("Asset removed successfully", extra={"uid": asset.uid, "path": str(path)})
        self._log_state(asset, AssetState.ABSENT)
        if self.observer:
            await self._notify(self.observer.on_removed, asset, path)

    async def _notify(
        self,
        hook: Callable[[AssetDescriptor, Path], Awaitable[None]],
        asset: AssetDescriptor,
        path: Path,
    ) -> None:
        try:
            await hook(asset, path)
        except Exception:
            logger.exception("Asset observer failed", extra={
                "hook": getattr(hook, "__name__", str(hook)),
                "uid": asset.uid,
                "path": str(path),
            })

    def _log_state(self, asset: AssetDescriptor, state: AssetState) -> None:
        logger.debug("Asset state changed", extra={"uid": asset.uid, "state": state.value})
