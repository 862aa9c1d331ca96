import asyncio
import mimetypes
import os
from pathlib import Path

import boto3
from botocore.exceptions import ClientError

from asset_sync.asset import AssetDescriptor
from asset_sync.config.schema import S3MirrorConfig
from asset_sync.log_config import logger

S3_DELETE_BATCH = 1000


class LoggingObserver:
    async def on_stored(self, asset: AssetDescriptor, path: Path) -> None:
        logger.info("Asset stored", extra={"event": "DOWNLOADED", "uid": asset.uid, "path": str(path)})

    async def on_removed(self, asset: AssetDescriptor, path: Path) -> None:
        logger.info("Asset removed", extra={"event": "DELETED", "uid": asset.uid, "path": str(path)})


class S3MirrorObserver:
    """
    Mirrors the local asset tree into an S3 bucket.

    Object keys are the paths relative to the local base directory, optionally
    under ``key_prefix``.
    """

    def __init__(self, cfg: S3MirrorConfig, base_dir: str | Path, client=None):
        self.config = cfg
        self.base_dir = Path(base_dir)
        self.client = client or self._create_client()

    def _create_client(self):
        profile = os.getenv("AWS_PROFILE")
        access_key = os.getenv("AWS_ACCESS_KEY_ID")
        secret_key = os.getenv("AWS_SECRET_ACCESS_KEY")

        if profile:
            session = boto3.Session(profile_name=profile)
        elif access_key and secret_key:
            session = boto3.Session(
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                region_name=self.config.region,
            )
        else:
            session = boto3.Session(region_name=self.config.region)

        client_args = {
            "region_name": self.config.region,
            "use_ssl": True,
        }

        if self.config.endpoint_url:
            client_args["endpoint_url"] = self.config.endpoint_url
            client_args["use_ssl"] = self.config.endpoint_url.startswith("https")

        return session.client("s3", **client_args)

    def object_key(self, path: Path) -> str:
        relative = Path(path).relative_to(self.base_dir).as_posix()
        prefix = self.config.key_prefix.strip("/")
        return f"{prefix}/{relative}" if prefix else relative

    async def on_stored(self, asset: AssetDescriptor, path: Path) -> None:
        key = self.object_key(path)
        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"

        await asyncio.to_thread(
            self.client.upload_file,
            str(path),
            self.config.bucket,
            key,
            ExtraArgs={"ContentType": content_type}
        )
        logger.info("Asset mirrored to S3", extra={"uid": asset.uid, "bucket": self.config.bucket, "key": key})

    async def on_removed(self, asset: AssetDescriptor, path: Path) -> None:
        key = self.object_key(path)

        # the path may have been a single file or a whole asset folder
        await asyncio.to_thread(self.client.delete_object, Bucket=self.config.bucket, Key=key)
        removed = await asyncio.to_thread(self._delete_prefix, f"{key}/")
        logger.info("Asset removed from S3 mirror", extra={
            "uid": asset.uid,
            "bucket": self.config.bucket,
            "key": key,
            "nested": removed,
        })

    def _delete_prefix(self, prefix: str) -> int:
        paginator = self.client.get_paginator("list_objects_v2")
        keys = [
            obj["Key"]
            for page in paginator.paginate(Bucket=self.config.bucket, Prefix=prefix)
            for obj in page.get("Contents", [])
        ]

        for i in range(0, len(keys), S3_DELETE_BATCH):
            batch = keys[i:i + S3_DELETE_BATCH]
            try:
                self.client.delete_objects(
                    Bucket=self.config.bucket,
                    Delete={"Objects": [{"Key": k} for k in batch], "Quiet": True},
                )
            except ClientError as e:
                logger.error(f"Error deleting S3 objects: {e}", extra={"prefix": prefix})
                raise
        return len(keys)
