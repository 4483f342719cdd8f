from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from pagebuilder.config import settings
from pagebuilder.errors import PipelineError

logger = logging.getLogger(__name__)

_NAME_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\b(faq|frequently\s*asked)\b"), "FAQ"),
    (re.compile(r"\bhero\b"), "Hero"),
    (re.compile(r"\b(feature|service)s?\b"), "Features"),
    (re.compile(r"\bpricing\b"), "Pricing"),
    (re.compile(r"\b(testimonial|review)s?\b"), "Testimonial"),
    (re.compile(r"\bcta\b|call.to.action"), "CTA"),
    (re.compile(r"\bfooter\b"), "Footer"),
    (re.compile(r"\b(form|contact)\b"), "Form"),
    (re.compile(r"\b(article|blog|post)\b"), "Article"),
    (re.compile(r"\bproduct\b"), "Product"),
)

_CLASS_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r'class="[^"]*hero', re.IGNORECASE), "Hero"),
    (re.compile(r'class="[^"]*testimonial', re.IGNORECASE), "Testimonial"),
    (re.compile(r'class="[^"]*pricing', re.IGNORECASE), "Pricing"),
    (re.compile(r'class="[^"]*feature', re.IGNORECASE), "Features"),
    (re.compile(r'class="[^"]*footer', re.IGNORECASE), "Footer"),
    (re.compile(r'class="[^"]*cta', re.IGNORECASE), "CTA"),
)
_FAQ_CLASS_RE = re.compile(r'class="[^"]*faq', re.IGNORECASE)
_TEMPLATE_VAR_RE = re.compile(r"\{\{[^}]+\}\}")
_CUSTOM_CLASS_RE = re.compile(r'class="[^"]*[a-z]+-{1,2}[a-z]', re.IGNORECASE)
_MAX_CUSTOM_CLASSES = 3


class ComponentServiceError(PipelineError):
    error_code = "upstream_unavailable"
    status_code = 502


@dataclass(frozen=True)
class ReusableComponent:
    id: str
    name: str
    type: str
    html: str
    schema_hint: Optional[dict[str, Any]] = None
    tags: tuple[str, ...] = ()


@dataclass
class ComponentIndex:
    """Request-scoped ``type -> [component]`` lookup. Built once per synthesis and passed down."""

    by_type: dict[str, list[ReusableComponent]] = field(default_factory=dict)

    def add(self, component: ReusableComponent) -> None:
        self.by_type.setdefault(component.type, []).append(component)

    def candidates(self, component_type: str) -> list[ReusableComponent]:
        return list(self.by_type.get(component_type, []))

    def types(self) -> list[str]:
        return sorted(self.by_type)

    def __len__(self) -> int:
        return sum(len(items) for items in self.by_type.values())


def infer_component_type(raw: dict[str, Any]) -> Optional[str]:
    name = str(raw.get("name") or "").lower()
    html = str(raw.get("html") or "")

    for pattern, component_type in _NAME_RULES:
        if pattern.search(name):
            return component_type

    if _FAQ_CLASS_RE.search(html) or "frequently" in html.lower():
        return "FAQ"
    for pattern, component_type in _CLASS_RULES:
        if pattern.search(html):
            return component_type

    schema = raw.get("schema")
    schema_type = str(schema.get("@type") or "").lower() if isinstance(schema, dict) else ""
    if "faq" in schema_type:
        return "FAQ"
    if "wpfooter" in schema_type:
        return "Footer"
    return None


def is_usable_candidate(html: str) -> bool:
    """Snippets carrying template variables or heavy custom class naming cannot be adapted cleanly."""
    if not html:
        return False
    if _TEMPLATE_VAR_RE.search(html):
        return False
    return len(_CUSTOM_CLASS_RE.findall(html)) <= _MAX_CUSTOM_CLASSES


def _to_component(raw: dict[str, Any], component_type: str) -> ReusableComponent:
    schema = raw.get("schema")
    tags = raw.get("tags") or []
    return ReusableComponent(
        id=str(raw.get("short_id") or raw.get("id") or ""),
        name=str(raw.get("name") or ""),
        type=component_type,
        html=str(raw.get("html") or ""),
        schema_hint=schema if isinstance(schema, dict) else None,
        tags=tuple(str(tag) for tag in tags if isinstance(tag, str)),
    )


class ComponentServiceClient:
    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        page_size: Optional[int] = None,
        timeout: Optional[float] = None,
        max_pages: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = (base_url or settings.COMPONENT_SERVICE_BASE_URL or "").rstrip("/")
        self._page_size = page_size or settings.COMPONENT_SERVICE_PAGE_SIZE
        self._timeout = timeout or settings.COMPONENT_SERVICE_TIMEOUT_SECONDS
        self._max_pages = max_pages or settings.COMPONENT_SERVICE_MAX_PAGES
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self._base_url)

    async def fetch_index(self) -> ComponentIndex:
        """Page through the catalog and classify every usable snippet.

        Pagination stops on an empty page or when the payload carries no ``nextPage``.
        """
        if not self._base_url:
            raise ComponentServiceError(message="COMPONENT_SERVICE_BASE_URL not configured")

        index = ComponentIndex()
        skipped = 0
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            for page in range(1, self._max_pages + 1):
                payload = await self._get_page(client, page)
                result = payload.get("result", payload) if isinstance(payload, dict) else payload
                if isinstance(result, list):
                    items = result
                elif isinstance(result, dict):
                    items = result.get("items") or []
                else:
                    items = []
                if not items:
                    break

                for raw in items:
                    if not isinstance(raw, dict):
                        continue
                    component_type = infer_component_type(raw)
                    if component_type is None:
                        continue
                    if not is_usable_candidate(str(raw.get("html") or "")):
                        skipped += 1
                        continue
                    index.add(_to_component(raw, component_type))

                if not isinstance(result, dict) or not result.get("nextPage"):
                    break

        logger.info(
            "Component index loaded",
            extra={"component_count": len(index), "types": index.types(), "skipped": skipped},
        )
        return index

    async def _get_page(self, client: httpx.AsyncClient, page: int) -> Any:
        url = f"{self._base_url}/bloxx_components"
        try:
            response = await client.get(url, params={"per_page": self._page_size, "page": page})
        except httpx.RequestError as exc:
            raise ComponentServiceError(message=f"Network error while calling content service: {exc}") from exc

        if response.status_code >= 400:
            raise ComponentServiceError(
                message=f"Content service call failed ({response.status_code}): {response.text}"
            )
        try:
            return response.json()
        except ValueError as exc:
            raise ComponentServiceError(message="Content service returned invalid JSON") from exc


async def load_component_index(client: ComponentServiceClient, *, required: Optional[bool] = None) -> ComponentIndex:
    """Fetch the index; when not required, a content-service failure degrades to an empty index."""
    must_succeed = settings.COMPONENT_INDEX_REQUIRED if required is None else required
    try:
        return await client.fetch_index()
    except ComponentServiceError as exc:
        if must_succeed:
            raise
        logger.warning(
            "Content service unavailable; every slot will be generated",
            extra={"reason": exc.message},
        )
        return ComponentIndex()
