from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Optional

from pagebuilder.services.artifact_store import (
    ArtifactStore,
    VersionConflictError,
    artifact_key,
    put_if_match,
)
from pagebuilder.services.collab import RoomRegistry, remote_save_message
from pagebuilder.services.save_enhancer import SaveEnhancer

logger = logging.getLogger(__name__)


@dataclass
class SaveResult:
    version_tag: str
    enhanced: bool
    html: str
    schema_type: Optional[str] = None
    changes: list[str] = field(default_factory=list)


class PageSaver:
    """Conditional save: conflict check, best-effort enhancement, write, then notify live editors."""

    def __init__(
        self,
        *,
        store: ArtifactStore,
        enhancer: SaveEnhancer,
        rooms: RoomRegistry,
        site_url_base: Optional[str] = None,
    ) -> None:
        self._store = store
        self._enhancer = enhancer
        self._rooms = rooms
        self._site_url_base = site_url_base

    async def save(
        self,
        *,
        site: str,
        page: str,
        html: str,
        expected_version_tag: Optional[str] = None,
    ) -> SaveResult:
        key = artifact_key(site, page)

        # Fail before paying for enhancement; put_if_match re-checks right before the write.
        if expected_version_tag:
            current = await self._store.head(key)
            if current is not None and current != expected_version_tag:
                raise VersionConflictError(key=key, server_version_tag=current)

        site_url = f"{self._site_url_base.rstrip('/')}/{site}" if self._site_url_base else None
        enhancement = await self._enhancer.enhance(html, page=page, site_url=site_url)
        version_tag = await put_if_match(
            self._store,
            key,
            enhancement.html,
            expected_version_tag=expected_version_tag,
        )
        logger.info(
            "Page saved",
            extra={"site": site, "page": page, "version_tag": version_tag, "enhanced": enhancement.enhanced},
        )

        await self._notify(site, page, version_tag)
        return SaveResult(
            version_tag=version_tag,
            enhanced=enhancement.enhanced,
            html=enhancement.html,
            schema_type=enhancement.schema_type,
            changes=list(enhancement.changes),
        )

    async def _notify(self, site: str, page: str, version_tag: str) -> None:
        message = json.dumps(remote_save_message(site=site, page=page, version_tag=version_tag))
        try:
            await self._rooms.broadcast(site, page, message)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Remote-save broadcast failed",
                extra={"site": site, "page": page, "reason": str(exc)},
            )
