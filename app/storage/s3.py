from typing import List, Optional
from botocore.exceptions import BotoCoreError, ClientError
import logging

from app.exceptions import (
    StorageNotFoundError,
    StorageReadError,
    StorageWriteError,
    error_code,
)
from app.gallery.models import Item
from app.settings import Settings
from app.storage.session import build_session, client_kwargs
from app.storage.signing import DelegatedUrlSigner, SharedKeyUrlSigner

log = logging.getLogger(__name__)

NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}

# -------------------------
# S3 Service
# -------------------------
class S3Service:
    def __init__(self, settings: Settings, session=None, signer=None):
        self.settings = settings
        self.bucket = settings.s3_bucket
        session = session or build_session(settings)

        self.client = session.client("s3", **client_kwargs(settings, signature_version="s3v4"))
        log.info("Initialized S3 client for bucket %s", self.bucket)

        if signer is not None:
            self.signer = signer
        elif settings.signing_mode == "delegated":
            self.signer = DelegatedUrlSigner(session, settings)
        else:
            self.signer = SharedKeyUrlSigner(self.client, self.bucket)

    def ensure_bucket(self):
        try:
            self.client.head_bucket(Bucket=self.bucket)
            log.debug("Bucket %s already exists", self.bucket)
            return
        except ClientError as e:
            if error_code(e) not in NOT_FOUND_CODES:
                log.error("Failed to check bucket: %s", e)
                raise StorageWriteError("ensure_bucket", self.bucket, e) from e
        except BotoCoreError as e:
            raise StorageWriteError("ensure_bucket", self.bucket, e) from e

        kwargs = {"Bucket": self.bucket}
        if self.settings.aws_region != "us-east-1":
            kwargs["CreateBucketConfiguration"] = {"LocationConstraint": self.settings.aws_region}
        try:
            self.client.create_bucket(**kwargs)
        except ClientError as e:
            if error_code(e) != "BucketAlreadyOwnedByYou":
                raise StorageWriteError("ensure_bucket", self.bucket, e) from e
        except BotoCoreError as e:
            raise StorageWriteError("ensure_bucket", self.bucket, e) from e
        log.info("Created bucket %s", self.bucket)

    def list_items(self) -> List[Item]:
        items = []
        try:
            paginator = self.client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket):
                for obj in page.get("Contents", []):
                    items.append(
                        Item(storage_key=obj["Key"], created_on=obj.get("LastModified"), size=obj.get("Size", 0))
                    )
        except (BotoCoreError, ClientError) as e:
            raise StorageReadError("list_items", self.bucket, e) from e
        log.debug("Listed %d objects in s3://%s", len(items), self.bucket)
        return items

    def put_item(self, key: str, data: bytes, content_type: str = "application/octet-stream"):
        try:
            self.client.put_object(Bucket=self.bucket, Key=key, Body=data, ContentType=content_type)
        except (BotoCoreError, ClientError) as e:
            raise StorageWriteError("put_item", key, e) from e
        log.debug("Uploaded %s to s3://%s/%s", key, self.bucket, key)

    def delete_item(self, key: str):
        # delete_object succeeds silently on missing keys, so probe first
        try:
            self.client.head_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            if error_code(e) in NOT_FOUND_CODES:
                raise StorageNotFoundError("delete_item", key) from e
            raise StorageWriteError("delete_item", key, e) from e
        except BotoCoreError as e:
            raise StorageWriteError("delete_item", key, e) from e

        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise StorageWriteError("delete_item", key, e) from e
        log.debug("Deleted s3://%s/%s", self.bucket, key)

    def signed_url(self, key: str, ttl: Optional[int] = None) -> str:
        url = self.signer.sign(key, ttl or self.settings.presign_expire_seconds)
        if self.settings.external_endpoint and self.settings.aws_endpoint_url:
            url = url.replace(self.settings.aws_endpoint_url, self.settings.external_endpoint)
        return url

    def close(self):
        log.info("Closed S3 client")
