"""
    Presigned URL strategies for the object store.

    SharedKeyUrlSigner signs locally with the gateway's own credentials.
    DelegatedUrlSigner trades the ambient identity for short-lived STS
    credentials once, caches them, and signs with them until they can no
    longer cover the requested URL lifetime.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
import logging
import threading

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from app.exceptions import SigningError
from app.settings import Settings
from app.storage.session import client_kwargs

log = logging.getLogger(__name__)

SIGNER_SESSION_NAME = "image-gallery-signer"

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

class SharedKeyUrlSigner:
    def __init__(self, client, bucket: str):
        self.client = client
        self.bucket = bucket

    def sign(self, key: str, ttl: int) -> str:
        try:
            return self.client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=ttl,
            )
        except (BotoCoreError, ClientError) as e:
            raise SigningError("sign_url", key, e) from e

@dataclass(frozen=True)
class Delegation:
    client: Any
    expiration: datetime

    def covers(self, ttl: int, now: datetime) -> bool:
        return self.expiration >= now + timedelta(seconds=ttl)

class DelegatedUrlSigner:
    def __init__(
        self,
        session: boto3.session.Session,
        settings: Settings,
        sts_client=None,
    ):
        self.session = session
        self.settings = settings
        self.bucket = settings.s3_bucket
        self.sts = sts_client or session.client("sts", **client_kwargs(settings))
        self._delegation: Optional[Delegation] = None
        self._lock = threading.Lock()

    def sign(self, key: str, ttl: int) -> str:
        delegation = self._current(key, ttl)
        try:
            return delegation.client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=ttl,
            )
        except (BotoCoreError, ClientError) as e:
            raise SigningError("sign_url", key, e) from e

    def _current(self, key: str, ttl: int) -> Delegation:
        delegation = self._delegation
        if delegation is not None and delegation.covers(ttl, _utcnow()):
            return delegation
        with self._lock:
            # Another thread may have refreshed while we waited
            delegation = self._delegation
            if delegation is not None and delegation.covers(ttl, _utcnow()):
                return delegation
            delegation = self._fetch(key)
            if not delegation.covers(ttl, _utcnow()):
                raise SigningError(
                    "sign_url",
                    key,
                    f"delegated credential expires at {delegation.expiration.isoformat()}, "
                    f"before a {ttl}s URL would",
                )
            self._delegation = delegation
            return delegation

    def _fetch(self, key: str) -> Delegation:
        duration = self.settings.delegation_duration_seconds
        try:
            if self.settings.delegation_role_arn:
                resp = self.sts.assume_role(
                    RoleArn=self.settings.delegation_role_arn,
                    RoleSessionName=SIGNER_SESSION_NAME,
                    DurationSeconds=duration,
                )
            else:
                resp = self.sts.get_session_token(DurationSeconds=duration)
            creds = resp["Credentials"]
            client = self.session.client(
                "s3",
                aws_access_key_id=creds["AccessKeyId"],
                aws_secret_access_key=creds["SecretAccessKey"],
                aws_session_token=creds["SessionToken"],
                **client_kwargs(self.settings, signature_version="s3v4"),
            )
        except (BotoCoreError, ClientError) as e:
            raise SigningError("obtain_delegation", key, e) from e

        expiration = creds["Expiration"]
        if expiration.tzinfo is None:
            expiration = expiration.replace(tzinfo=timezone.utc)
        log.info("Obtained delegated signing credential valid until %s", expiration.isoformat())
        return Delegation(client=client, expiration=expiration)
