from __future__ import annotations

import logging
from typing import Optional

import httpx

from pagebuilder.config import settings
from pagebuilder.errors import PipelineError
from pagebuilder.services.page_templates import IndustryProfile

logger = logging.getLogger(__name__)

_ERROR_DETAIL_CHARS = 200


class IndustryTemplateError(PipelineError):
    error_code = "upstream_unavailable"
    status_code = 502


class IndustryTemplateClient:
    """Fetches prebuilt industry pages and rebrands them with the new business name."""

    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = (base_url or settings.INDUSTRY_TEMPLATE_BASE_URL or "").rstrip("/")
        self._timeout = timeout or settings.INDUSTRY_TEMPLATE_TIMEOUT_SECONDS
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self._base_url)

    def covers(self, profile: Optional[IndustryProfile], slug: str) -> bool:
        return self.configured and profile is not None and profile.has_template_page(slug)

    async def fetch_page(self, profile: IndustryProfile, slug: str, *, business_name: str) -> str:
        url = f"{self._base_url}/{profile.template_site}/{slug}.html"
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            try:
                response = await client.get(url)
            except httpx.RequestError as exc:
                raise IndustryTemplateError(message=f"Network error while fetching template: {exc}") from exc

        if response.status_code >= 400:
            raise IndustryTemplateError(
                message=f"Template fetch failed ({response.status_code}): {response.text[:_ERROR_DETAIL_CHARS]}"
            )
        html = response.text
        if profile.template_default_name:
            html = html.replace(profile.template_default_name, business_name)
        logger.info(
            "Industry template fetched",
            extra={"industry": profile.key, "page": slug, "bytes": len(html)},
        )
        return html
