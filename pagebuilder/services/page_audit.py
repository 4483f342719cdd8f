from __future__ import annotations

import logging
import re
import secrets
import string
import time
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import urlencode

import httpx

from pagebuilder.config import settings
from pagebuilder.errors import PipelineError
from pagebuilder.services.artifact_store import ArtifactStore

logger = logging.getLogger(__name__)

AUDIT_TEMP_SEGMENT = "_audit-temp"
_BASE36 = string.digits + string.ascii_lowercase
_TEMP_ID_RE = re.compile(r"^\d+-[a-z0-9]+$")
_ERROR_DETAIL_CHARS = 500


class AuditServiceError(PipelineError):
    error_code = "audit_failed"
    status_code = 502


class InvalidAuditTempIdError(PipelineError):
    error_code = "invalid_request"
    status_code = 400


@dataclass(frozen=True)
class AuditTempCopy:
    site: str
    temp_id: str
    key: str
    public_url: str


def new_temp_id(*, now_ms: Optional[int] = None) -> str:
    millis = int(time.time() * 1000) if now_ms is None else now_ms
    suffix = "".join(secrets.choice(_BASE36) for _ in range(6))
    return f"{millis}-{suffix}"


def audit_temp_key(site: str, temp_id: str) -> str:
    if not _TEMP_ID_RE.match(temp_id):
        raise InvalidAuditTempIdError(message="Invalid id format")
    return f"{site}/{AUDIT_TEMP_SEGMENT}/{temp_id}.html"


def audit_temp_url(site: str, temp_id: str, *, base_url: Optional[str] = None) -> str:
    base = (base_url or settings.AUDIT_PUBLIC_BASE_URL or "").rstrip("/")
    return f"{base}/api/audit-temp?{urlencode({'site': site, 'id': temp_id})}"


class PageAuditor:
    """
    Publishes a throwaway copy of the page, asks the audit service to crawl it and relays the report.

    The caller owns cleanup of the temp copy (see ``cleanup``); it must run on success and failure.
    """

    def __init__(
        self,
        store: ArtifactStore,
        *,
        service_url: Optional[str] = None,
        public_base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._store = store
        self._service_url = service_url or settings.AUDIT_SERVICE_URL
        self._public_base_url = public_base_url or settings.AUDIT_PUBLIC_BASE_URL
        self._timeout = timeout or settings.AUDIT_TIMEOUT_SECONDS
        self._transport = transport

    async def publish_temp_copy(self, site: str, html: str) -> AuditTempCopy:
        if not self._service_url:
            raise AuditServiceError(message="AUDIT_SERVICE_URL not configured", status_code=503)
        if not self._public_base_url:
            raise AuditServiceError(message="AUDIT_PUBLIC_BASE_URL not configured", status_code=503)
        temp_id = new_temp_id()
        key = audit_temp_key(site, temp_id)
        await self._store.put(key, html)
        return AuditTempCopy(
            site=site,
            temp_id=temp_id,
            key=key,
            public_url=audit_temp_url(site, temp_id, base_url=self._public_base_url),
        )

    async def run_audit(self, temp: AuditTempCopy) -> dict[str, Any]:
        if not self._service_url:
            raise AuditServiceError(message="AUDIT_SERVICE_URL not configured", status_code=503)
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            try:
                response = await client.get(self._service_url, params={"url": temp.public_url})
            except httpx.RequestError as exc:
                raise AuditServiceError(message=f"Network error while calling audit service: {exc}") from exc

        if response.status_code >= 400:
            raise AuditServiceError(
                message=f"Audit service call failed ({response.status_code}): {response.text[:_ERROR_DETAIL_CHARS]}"
            )
        try:
            report = response.json()
        except ValueError as exc:
            logger.warning(
                "Audit service returned non-JSON",
                extra={"site": temp.site, "temp_url": temp.public_url},
            )
            raise AuditServiceError(
                message=f"Audit service returned invalid JSON: {response.text[:_ERROR_DETAIL_CHARS]}"
            ) from exc
        if not isinstance(report, dict):
            return {"report": report}
        return report

    async def cleanup(self, temp: AuditTempCopy) -> None:
        try:
            await self._store.delete(temp.key)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Audit temp cleanup failed", extra={"key": temp.key, "reason": str(exc)})

    async def read_temp_copy(self, site: str, temp_id: str) -> Optional[str]:
        artifact = await self._store.get(audit_temp_key(site, temp_id))
        return artifact.body if artifact is not None else None
