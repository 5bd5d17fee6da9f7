"""
Object store adapter: signed URLs, copy/delete/list and small JSON documents.

The S3 implementation works against AWS S3 or any S3-compatible endpoint
(Cloudflare R2, MinIO) via boto3. Calls are not retried; failures are
translated into the radio error taxonomy and surfaced to the caller.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError

from phxradio.core.errors import ConfigurationError, ConflictError, NotFoundError, UpstreamError

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}
_CONFLICT_CODES = {"412", "409", "PreconditionFailed", "ConditionalRequestConflict"}


@dataclass
class StoredObject:
    """Body and version tag of an object read from the store."""
    body: bytes
    etag: str


class ObjectStore(ABC):
    """Key-space operations the radio needs from a bucket."""

    @abstractmethod
    def signed_upload_url(self, key: str, content_type: str, ttl: int) -> str:
        """Time-limited URL the client PUTs the object to directly."""

    @abstractmethod
    def signed_download_url(self, key: str, ttl: int) -> str:
        """Time-limited URL for direct playback / download."""

    @abstractmethod
    def public_url(self, key: str) -> str:
        """Unsigned URL of an object (only resolvable for public objects)."""

    @abstractmethod
    def exists(self, key: str) -> bool:
        pass

    @abstractmethod
    def copy(self, source_key: str, dest_key: str) -> None:
        """Server-side copy. Raises NotFoundError if the source is missing."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Delete an object. Deleting a missing key is not an error."""

    @abstractmethod
    def list(self, prefix: str) -> List[str]:
        """Keys under prefix, excluding the bare prefix (folder marker) itself."""

    @abstractmethod
    def read(self, key: str) -> Optional[StoredObject]:
        """Read a (small) object, or None if it does not exist."""

    @abstractmethod
    def write(
        self,
        key: str,
        body: bytes,
        content_type: str,
        *,
        if_match: Optional[str] = None,
        if_none_match: bool = False,
    ) -> str:
        """Write an object and return its new etag.

        if_match: only write if the current etag equals this value.
        if_none_match: only write if the key does not exist yet.
        Raises ConflictError when the precondition does not hold.
        """


def _error_code(e: ClientError) -> str:
    return str(e.response.get("Error", {}).get("Code", ""))


def _error_message(e: ClientError) -> str:
    return e.response.get("Error", {}).get("Message") or str(e)


class S3ObjectStore(ObjectStore):
    """S3 implementation using a boto3 client bound to one bucket."""

    def __init__(
        self,
        bucket_name: str,
        region: str = "us-east-2",
        endpoint_url: str = "",
        public_base_url: str = "",
        client=None,
    ):
        if not bucket_name:
            raise ConfigurationError("S3_BUCKET_NAME is not configured")
        self.bucket_name = bucket_name
        self.region = region
        self.public_base_url = (
            public_base_url.rstrip("/")
            or f"https://{bucket_name}.s3.{region}.amazonaws.com"
        )
        if client is None:
            client = boto3.client(
                "s3",
                region_name=region,
                endpoint_url=endpoint_url or None,
                config=BotoConfig(signature_version="s3v4"),
            )
        self.s3_client = client

    def _translate(self, e: Exception, action: str, key: str) -> Exception:
        """Map a boto error to NotFound / Conflict / Configuration / Upstream."""
        if isinstance(e, NoCredentialsError):
            return ConfigurationError(f"AWS credentials are not configured ({action} {key})")
        if isinstance(e, ClientError):
            code = _error_code(e)
            if code in _NOT_FOUND_CODES:
                return NotFoundError(f"Object not found: {key}")
            if code in _CONFLICT_CODES:
                return ConflictError(f"Object changed concurrently: {key}")
            logger.warning("S3 %s failed for %s: %s %s", action, key, code, _error_message(e))
            return UpstreamError(f"S3 {action} failed for {key}: {_error_message(e)}")
        logger.warning("S3 %s failed for %s: %s", action, key, e)
        return UpstreamError(f"S3 {action} failed for {key}: {e}")

    def signed_upload_url(self, key: str, content_type: str, ttl: int) -> str:
        try:
            return self.s3_client.generate_presigned_url(
                "put_object",
                Params={"Bucket": self.bucket_name, "Key": key, "ContentType": content_type},
                ExpiresIn=ttl,
            )
        except (ClientError, BotoCoreError) as e:
            raise self._translate(e, "presign upload", key) from e

    def signed_download_url(self, key: str, ttl: int) -> str:
        try:
            return self.s3_client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket_name, "Key": key},
                ExpiresIn=ttl,
            )
        except (ClientError, BotoCoreError) as e:
            raise self._translate(e, "presign download", key) from e

    def public_url(self, key: str) -> str:
        return f"{self.public_base_url}/{key}"

    def exists(self, key: str) -> bool:
        try:
            self.s3_client.head_object(Bucket=self.bucket_name, Key=key)
            return True
        except ClientError as e:
            if _error_code(e) in _NOT_FOUND_CODES:
                return False
            raise self._translate(e, "head", key) from e
        except BotoCoreError as e:
            raise self._translate(e, "head", key) from e

    def copy(self, source_key: str, dest_key: str) -> None:
        try:
            self.s3_client.copy_object(
                Bucket=self.bucket_name,
                Key=dest_key,
                CopySource={"Bucket": self.bucket_name, "Key": source_key},
            )
        except (ClientError, BotoCoreError) as e:
            raise self._translate(e, "copy", source_key) from e

    def delete(self, key: str) -> None:
        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise self._translate(e, "delete", key) from e

    def list(self, prefix: str) -> List[str]:
        keys: List[str] = []
        try:
            paginator = self.s3_client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket_name, Prefix=prefix):
                for obj in page.get("Contents", []):
                    if obj["Key"] != prefix:
                        keys.append(obj["Key"])
        except (ClientError, BotoCoreError) as e:
            raise self._translate(e, "list", prefix) from e
        return keys

    def read(self, key: str) -> Optional[StoredObject]:
        try:
            response = self.s3_client.get_object(Bucket=self.bucket_name, Key=key)
            return StoredObject(body=response["Body"].read(), etag=response["ETag"])
        except ClientError as e:
            if _error_code(e) in _NOT_FOUND_CODES:
                return None
            raise self._translate(e, "get", key) from e
        except BotoCoreError as e:
            raise self._translate(e, "get", key) from e

    def write(
        self,
        key: str,
        body: bytes,
        content_type: str,
        *,
        if_match: Optional[str] = None,
        if_none_match: bool = False,
    ) -> str:
        kwargs = {
            "Bucket": self.bucket_name,
            "Key": key,
            "Body": body,
            "ContentType": content_type,
        }
        if if_match is not None:
            kwargs["IfMatch"] = if_match
        elif if_none_match:
            kwargs["IfNoneMatch"] = "*"
        try:
            response = self.s3_client.put_object(**kwargs)
            return response["ETag"]
        except (ClientError, BotoCoreError) as e:
            raise self._translate(e, "put", key) from e
