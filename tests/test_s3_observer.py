from pathlib import Path
from unittest.mock import MagicMock

import pytest

from asset_sync.asset import AssetDescriptor
from asset_sync.asset_store.observer import S3MirrorObserver
from asset_sync.config.schema import S3MirrorConfig

BASE_DIR = Path("/srv/contents")


@pytest.fixture
def client() -> MagicMock:
    client = MagicMock()
    client.get_paginator.return_value.paginate.return_value = []
    return client


@pytest.fixture
def observer(client: MagicMock) -> S3MirrorObserver:
    cfg = S3MirrorConfig(bucket="assets", region="eu-west-1", key_prefix="/mirror/")
    return S3MirrorObserver(cfg, BASE_DIR, client=client)


@pytest.fixture
def asset() -> AssetDescriptor:
    return AssetDescriptor(uid="u1", filename="logo.png", locale="en-us", internal_url="en-us/u1/logo.png")


def test_object_key(observer: S3MirrorObserver):
    assert observer.object_key(BASE_DIR / "en-us" / "u1" / "logo.png") == "mirror/en-us/u1/logo.png"


def test_object_key_without_prefix(client: MagicMock):
    observer = S3MirrorObserver(S3MirrorConfig(bucket="assets", region="eu-west-1"), BASE_DIR, client=client)

    assert observer.object_key(BASE_DIR / "en-us" / "u1") == "en-us/u1"


@pytest.mark.asyncio
async def test_on_stored_uploads_file(observer: S3MirrorObserver, client: MagicMock, asset):
    path = BASE_DIR / "en-us" / "u1" / "logo.png"

    await observer.on_stored(asset, path)

    client.upload_file.assert_called_once_with(
        str(path),
        "assets",
        "mirror/en-us/u1/logo.png",
        ExtraArgs={"ContentType": "image/png"},
    )


@pytest.mark.asyncio
async def test_on_removed_file(observer: S3MirrorObserver, client: MagicMock, asset):
    await observer.on_removed(asset, BASE_DIR / "en-us" / "u1" / "logo.png")

    client.delete_object.assert_called_once_with(Bucket="assets", Key="mirror/en-us/u1/logo.png")
    client.get_paginator.return_value.paginate.assert_called_once_with(
        Bucket="assets",
        Prefix="mirror/en-us/u1/logo.png/",
    )
    client.delete_objects.assert_not_called()


@pytest.mark.asyncio
async def test_on_removed_folder_deletes_nested_objects(observer: S3MirrorObserver, client: MagicMock, asset):
    client.get_paginator.return_value.paginate.return_value = [
        {"Contents": [{"Key": "mirror/en-us/u1/logo.png"}, {"Key": "mirror/en-us/u1/thumb.png"}]},
        {},
    ]

    await observer.on_removed(asset, BASE_DIR / "en-us" / "u1")

    client.delete_objects.assert_called_once_with(
        Bucket="assets",
        Delete={
            "Objects": [{"Key": "mirror/en-us/u1/logo.png"}, {"Key": "mirror/en-us/u1/thumb.png"}],
            "Quiet": True,
        },
    )
