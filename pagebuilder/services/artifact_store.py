from __future__ import annotations

import asyncio
import hashlib
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from pagebuilder.config import settings
from pagebuilder.errors import PipelineError

logger = logging.getLogger(__name__)

HTML_CONTENT_TYPE = "text/html; charset=utf-8"


class ArtifactStoreConfigurationError(PipelineError):
    error_code = "artifact_store_misconfigured"
    status_code = 500


class VersionConflictError(PipelineError):
    error_code = "conflict"
    status_code = 409

    def __init__(self, *, key: str, server_version_tag: str) -> None:
        super().__init__(message=f"Page {key} was modified by another writer")
        self.key = key
        self.server_version_tag = server_version_tag

    def payload(self) -> dict[str, Any]:
        body = super().payload()
        body["serverVersionTag"] = self.server_version_tag
        return body


@dataclass(frozen=True)
class StoredArtifact:
    body: str
    version_tag: str


@dataclass(frozen=True)
class ArtifactListing:
    key: str
    size: int
    version_tag: str
    timestamp: Optional[datetime]


class ArtifactStore(Protocol):
    async def get(self, key: str) -> Optional[StoredArtifact]: ...

    async def head(self, key: str) -> Optional[str]: ...

    async def put(self, key: str, body: str, *, content_type: str = HTML_CONTENT_TYPE) -> str: ...

    async def delete(self, key: str) -> None: ...

    async def list(self, prefix: str) -> list[ArtifactListing]: ...


def artifact_key(site: str, page: str, environment: Optional[str] = None) -> str:
    env = environment or settings.ARTIFACT_DRAFTS_ENVIRONMENT
    return f"{site}/{env}/{page}.html"


async def put_if_match(
    store: ArtifactStore,
    key: str,
    body: str,
    *,
    expected_version_tag: Optional[str],
) -> str:
    """Conditional write: reject when the caller's tag no longer matches the stored revision.

    An absent object or an absent expected tag always writes.
    """
    if expected_version_tag:
        current = await store.head(key)
        if current is not None and current != expected_version_tag:
            raise VersionConflictError(key=key, server_version_tag=current)
    return await store.put(key, body)


def _is_missing(exc: ClientError) -> bool:
    code = exc.response.get("Error", {}).get("Code") if hasattr(exc, "response") else None
    return code in ("404", "NoSuchKey", "NotFound")


class S3ArtifactStore:
    """
    S3-compatible page store. The version tag is the object ETag.

    boto3 is blocking, so every call is pushed onto a worker thread.
    """

    def __init__(self, *, client: Any = None, bucket: Optional[str] = None, prefix: Optional[str] = None) -> None:
        bucket_name = bucket or settings.ARTIFACT_STORAGE_BUCKET
        if not bucket_name:
            raise ArtifactStoreConfigurationError(message="ARTIFACT_STORAGE_BUCKET is required")
        self.bucket = bucket_name
        self.prefix = (settings.ARTIFACT_STORAGE_PREFIX if prefix is None else prefix).strip("/")
        self.client = client if client is not None else self._build_client()

    @staticmethod
    def _build_client() -> Any:
        if not settings.ARTIFACT_STORAGE_ACCESS_KEY or not settings.ARTIFACT_STORAGE_SECRET_KEY:
            raise ArtifactStoreConfigurationError(
                message="ARTIFACT_STORAGE_ACCESS_KEY and ARTIFACT_STORAGE_SECRET_KEY are required"
            )
        addressing_style = "path" if settings.ARTIFACT_STORAGE_FORCE_PATH_STYLE else "auto"
        session = boto3.session.Session()
        return session.client(
            "s3",
            endpoint_url=settings.ARTIFACT_STORAGE_ENDPOINT,
            aws_access_key_id=settings.ARTIFACT_STORAGE_ACCESS_KEY,
            aws_secret_access_key=settings.ARTIFACT_STORAGE_SECRET_KEY,
            region_name=settings.ARTIFACT_STORAGE_REGION or "us-east-1",
            use_ssl=bool(settings.ARTIFACT_STORAGE_USE_SSL),
            config=Config(
                s3={"addressing_style": addressing_style},
                signature_version="s3v4",
            ),
        )

    def _full_key(self, key: str) -> str:
        return f"{self.prefix}/{key}" if self.prefix else key

    def _relative_key(self, full_key: str) -> str:
        if self.prefix and full_key.startswith(f"{self.prefix}/"):
            return full_key[len(self.prefix) + 1 :]
        return full_key

    def _get_sync(self, key: str) -> Optional[StoredArtifact]:
        try:
            obj = self.client.get_object(Bucket=self.bucket, Key=self._full_key(key))
        except ClientError as exc:
            if _is_missing(exc):
                return None
            raise
        body = obj.get("Body")
        data = body.read() if body else b""
        return StoredArtifact(body=data.decode("utf-8"), version_tag=str(obj.get("ETag") or ""))

    def _head_sync(self, key: str) -> Optional[str]:
        try:
            obj = self.client.head_object(Bucket=self.bucket, Key=self._full_key(key))
        except ClientError as exc:
            if _is_missing(exc):
                return None
            raise
        return str(obj.get("ETag") or "")

    def _put_sync(self, key: str, body: str, content_type: str) -> str:
        response = self.client.put_object(
            Bucket=self.bucket,
            Key=self._full_key(key),
            Body=body.encode("utf-8"),
            ContentType=content_type,
        )
        return str(response.get("ETag") or "")

    def _delete_sync(self, key: str) -> None:
        self.client.delete_object(Bucket=self.bucket, Key=self._full_key(key))

    def _list_sync(self, prefix: str) -> list[ArtifactListing]:
        listings: list[ArtifactListing] = []
        kwargs: dict[str, Any] = {"Bucket": self.bucket, "Prefix": self._full_key(prefix)}
        while True:
            response = self.client.list_objects_v2(**kwargs)
            for item in response.get("Contents") or []:
                listings.append(
                    ArtifactListing(
                        key=self._relative_key(str(item.get("Key") or "")),
                        size=int(item.get("Size") or 0),
                        version_tag=str(item.get("ETag") or ""),
                        timestamp=item.get("LastModified"),
                    )
                )
            if not response.get("IsTruncated"):
                break
            kwargs["ContinuationToken"] = response.get("NextContinuationToken")
        return listings

    async def get(self, key: str) -> Optional[StoredArtifact]:
        return await asyncio.to_thread(self._get_sync, key)

    async def head(self, key: str) -> Optional[str]:
        return await asyncio.to_thread(self._head_sync, key)

    async def put(self, key: str, body: str, *, content_type: str = HTML_CONTENT_TYPE) -> str:
        tag = await asyncio.to_thread(self._put_sync, key, body, content_type)
        logger.info("Artifact written", extra={"key": key, "version_tag": tag, "bytes": len(body)})
        return tag

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._delete_sync, key)

    async def list(self, prefix: str) -> list[ArtifactListing]:
        return await asyncio.to_thread(self._list_sync, prefix)


@dataclass
class _MemoryObject:
    body: str
    version_tag: str
    content_type: str
    timestamp: datetime


class InMemoryArtifactStore:
    """Process-local store for development and tests. Tags are quoted MD5 digests, like S3 ETags."""

    def __init__(self) -> None:
        self._objects: dict[str, _MemoryObject] = {}

    @staticmethod
    def _tag_for(body: str) -> str:
        return f'"{hashlib.md5(body.encode("utf-8")).hexdigest()}"'

    async def get(self, key: str) -> Optional[StoredArtifact]:
        obj = self._objects.get(key)
        if obj is None:
            return None
        return StoredArtifact(body=obj.body, version_tag=obj.version_tag)

    async def head(self, key: str) -> Optional[str]:
        obj = self._objects.get(key)
        return obj.version_tag if obj is not None else None

    async def put(self, key: str, body: str, *, content_type: str = HTML_CONTENT_TYPE) -> str:
        tag = self._tag_for(body)
        self._objects[key] = _MemoryObject(
            body=body,
            version_tag=tag,
            content_type=content_type,
            timestamp=datetime.now(timezone.utc),
        )
        return tag

    async def delete(self, key: str) -> None:
        self._objects.pop(key, None)

    async def list(self, prefix: str) -> list[ArtifactListing]:
        return [
            ArtifactListing(key=key, size=len(obj.body.encode("utf-8")), version_tag=obj.version_tag, timestamp=obj.timestamp)
            for key, obj in sorted(self._objects.items())
            if key.startswith(prefix)
        ]


def build_artifact_store() -> ArtifactStore:
    if settings.ARTIFACT_STORE_BACKEND == "s3":
        return S3ArtifactStore()
    return InMemoryArtifactStore()
