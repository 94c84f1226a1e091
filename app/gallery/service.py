from datetime import datetime, timezone
from typing import BinaryIO, Iterable, List, Optional, Union
import logging
import os
import uuid

from app.storage.dynamodb import DynamoDBService
from app.storage.s3 import S3Service
from app.gallery.models import GalleryEntry
from app.exceptions import APIException, BatchDeleteError, InvalidKeyError

log = logging.getLogger(__name__)

MAX_KEY_BYTES = 1024
DEFAULT_CONTENT_TYPE = "application/octet-stream"

def list_gallery(s3: S3Service, db: DynamoDBService, ttl: Optional[int] = None) -> List[GalleryEntry]:
    """Lists every stored item newest first with its like count and a fresh signed URL.

    Any failure while resolving one entry fails the whole listing.
    """
    items = sorted(s3.list_items(), key=lambda item: item.storage_key, reverse=True)
    entries = []
    for item in items:
        likes = db.get_count(item.storage_key)
        url = s3.signed_url(item.storage_key, ttl)
        entries.append(GalleryEntry(name=item.storage_key, url=url, likes=likes))
    return entries

def storage_key_for(filename: Optional[str], now: Optional[datetime] = None) -> str:
    """Builds `<YYYYMMDDHHMMSSmmm>_<uuid4><ext>`, sortable by upload time."""
    now = now or datetime.now(timezone.utc)
    timestamp = now.strftime("%Y%m%d%H%M%S") + f"{now.microsecond // 1000:03d}"
    extension = os.path.splitext(filename or "")[1]
    return f"{timestamp}_{uuid.uuid4()}{extension}"

def save_upload(
    s3: S3Service,
    fileobj: Optional[BinaryIO],
    filename: Optional[str],
    content_type: Optional[str] = None,
) -> Optional[str]:
    """Stores one uploaded payload as-is. Returns the new key, or None when no file was sent."""
    if fileobj is None or not filename:
        log.debug("Upload request without a file; nothing to store")
        return None

    key = storage_key_for(filename)
    s3.put_item(key, fileobj.read(), content_type or DEFAULT_CONTENT_TYPE)
    log.info("Uploaded %s", key)
    return key

def normalize_keys(blob_names: Union[None, str, Iterable[str]]) -> List[str]:
    """Turns a form value into a list of keys; a lone string is one key, not its characters."""
    if blob_names is None:
        return []
    if isinstance(blob_names, str):
        return [blob_names] if blob_names else []
    return [name for name in blob_names if isinstance(name, str) and name]

def remove_items(s3: S3Service, blob_names: Union[None, str, Iterable[str]]) -> List[str]:
    """Deletes keys in order, stopping at the first failure.

    Keys removed before the failure stay removed; they are reported on the
    raised BatchDeleteError.
    """
    deleted = []
    for key in normalize_keys(blob_names):
        try:
            s3.delete_item(key)
        except APIException as e:
            log.error("Deletion stopped at %s after %d deleted: %s", key, len(deleted), e.detail)
            raise BatchDeleteError(key, e, deleted) from e
        deleted.append(key)
        log.info("Deleted %s", key)
    return deleted

def validate_key(key: Optional[str]) -> str:
    if key is None or not key.strip():
        raise InvalidKeyError("Storage key must not be empty")
    if len(key.encode("utf-8")) > MAX_KEY_BYTES:
        raise InvalidKeyError(f"Storage key exceeds {MAX_KEY_BYTES} bytes")
    if "/" in key or any(ord(ch) < 32 or ord(ch) == 127 for ch in key):
        raise InvalidKeyError("Storage key contains invalid characters")
    return key

def like_item(db: DynamoDBService, key: str) -> int:
    """Records one like and returns the updated count."""
    key = validate_key(key)
    likes = db.increment_count(key)
    log.info("Like recorded for %s (now %d)", key, likes)
    return likes
