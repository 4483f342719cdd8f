from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from pagebuilder.config import settings
from pagebuilder.llm.client import (
    GenerativeServiceError,
    GenerativeTextClient,
    LLMClientConfigError,
    LLMGenerationParams,
    ModelTier,
    ToolSpec,
)
from pagebuilder.services.html_cleanup import (
    apply_lazy_loading,
    apply_page_meta,
    has_document_root,
    replace_json_ld,
    strip_editor_bridge,
)
from pagebuilder.services.schema_registry import BusinessFacts, build_page_schemas

logger = logging.getLogger(__name__)

ENHANCE_MAX_TOKENS = 16384

ENHANCE_SYSTEM_PROMPT = """You are a web standards expert. You receive an HTML page and return an improved version through the enhance_page tool.

Improve the markup only:
- Semantic HTML: correct heading hierarchy (h1 then h2 then h3, never skipping), <main>, <header>, <footer>, <nav>, <section>, <article>
- Accessibility: aria-label or aria-labelledby on sections and nav, alt text on images, labels on form inputs, accessible button names
- Bootstrap cleanup: responsive col-md-* / col-lg-* classes, valid container > row > col nesting, no invalid class combinations
- SEO meta: a 50-60 character <title> and a 150-160 character meta description drawn from the content

Do NOT write JSON-LD; structured data is generated separately from the facts you extract.
Extract business facts only when they are actually present in the page.

CRITICAL: preserve ALL content, layout and visual appearance. Do not change text, image URLs, colors or layout structure.
Return the COMPLETE <!DOCTYPE html> document in the html field."""

ENHANCE_TOOL = ToolSpec(
    name="enhance_page",
    description="Return the improved page HTML together with business facts found in it.",
    input_schema={
        "type": "object",
        "properties": {
            "html": {"type": "string", "description": "The complete improved <!DOCTYPE html> document"},
            "businessType": {
                "type": "string",
                "description": 'Detected business type (e.g. "restaurant", "law firm", "yoga studio", "saas")',
            },
            "businessName": {"type": "string", "description": "Business or organization name"},
            "description": {"type": "string", "description": "Business description (150-160 chars for SEO)"},
            "phone": {"type": "string", "description": "Phone number if found"},
            "email": {"type": "string", "description": "Email if found"},
            "address": {"type": "string", "description": "Full address if found"},
            "priceRange": {"type": "string", "enum": ["$", "$$", "$$$", "$$$$"], "description": "Price range"},
            "hours": {"type": "string", "description": 'Business hours, e.g. "Mon-Fri 9am-6pm"'},
            "services": {"type": "array", "items": {"type": "string"}, "description": "Services or products offered"},
            "faqs": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {"question": {"type": "string"}, "answer": {"type": "string"}},
                    "required": ["question", "answer"],
                },
                "description": "FAQ items from accordion or details elements",
            },
            "title": {"type": "string", "description": "Improved page title, if changed"},
            "metaDescription": {"type": "string", "description": "Improved meta description, if changed"},
            "changes": {"type": "array", "items": {"type": "string"}, "description": "Short list of edits made"},
        },
        "required": ["html", "businessType", "businessName", "changes"],
    },
)


@dataclass
class EnhancementResult:
    html: str
    enhanced: bool
    schema_type: Optional[str] = None
    changes: list[str] = field(default_factory=list)
    schemas: list[dict[str, Any]] = field(default_factory=list)


def _optional_str(payload: dict[str, Any], key: str) -> Optional[str]:
    value = payload.get(key)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if isinstance(item, str) and item.strip()]


def facts_from_payload(payload: dict[str, Any], *, site_url: Optional[str] = None) -> BusinessFacts:
    faqs = [
        {"question": str(item["question"]), "answer": str(item["answer"])}
        for item in payload.get("faqs") or []
        if isinstance(item, dict) and item.get("question") and item.get("answer")
    ]
    return BusinessFacts(
        business_name=_optional_str(payload, "businessName") or "Business",
        business_type=_optional_str(payload, "businessType") or "local business",
        description=_optional_str(payload, "description") or "",
        phone=_optional_str(payload, "phone"),
        email=_optional_str(payload, "email"),
        address=_optional_str(payload, "address"),
        price_range=_optional_str(payload, "priceRange"),
        hours=_optional_str(payload, "hours"),
        services=_str_list(payload.get("services")),
        faqs=faqs,
        site_url=site_url,
    )


class SaveEnhancer:
    """Best-effort markup cleanup plus deterministic JSON-LD. Any failure returns the stripped input."""

    def __init__(self, llm: GenerativeTextClient, *, enabled: Optional[bool] = None) -> None:
        self._llm = llm
        self._enabled = settings.SAVE_ENHANCEMENT_ENABLED if enabled is None else enabled

    async def enhance(self, html: str, *, page: str, site_url: Optional[str] = None) -> EnhancementResult:
        stripped = strip_editor_bridge(html)
        if not self._enabled or not self._llm.configured:
            return EnhancementResult(html=stripped, enhanced=False)

        try:
            payload = await self._llm.call_tool(
                f"HTML to enhance:\n\n{stripped}",
                LLMGenerationParams(tier=ModelTier.CHEAP, max_tokens=ENHANCE_MAX_TOKENS, system=ENHANCE_SYSTEM_PROMPT),
                tool=ENHANCE_TOOL,
            )
        except (GenerativeServiceError, LLMClientConfigError) as exc:
            logger.warning("Save enhancement skipped", extra={"page": page, "reason": str(exc)})
            return EnhancementResult(html=stripped, enhanced=False)

        candidate = payload.get("html")
        if not isinstance(candidate, str) or not has_document_root(candidate):
            logger.warning("Save enhancement returned no document", extra={"page": page})
            return EnhancementResult(html=stripped, enhanced=False)

        facts = facts_from_payload(payload, site_url=site_url)
        base = (site_url or "").rstrip("/")
        page_url = f"{base}/{page}.html" if base else f"/{page}.html"
        schema_set = build_page_schemas(facts, _page_display_name(page), page_url, page)

        result_html = strip_editor_bridge(candidate)
        result_html = replace_json_ld(result_html, schema_set.all)
        result_html = apply_page_meta(
            result_html,
            title=_optional_str(payload, "title"),
            description=_optional_str(payload, "metaDescription"),
        )
        result_html = apply_lazy_loading(result_html)

        return EnhancementResult(
            html=result_html,
            enhanced=True,
            schema_type=schema_set.schema_type,
            changes=_str_list(payload.get("changes")),
            schemas=schema_set.all,
        )


def _page_display_name(page: str) -> str:
    if page == "index":
        return "Homepage"
    return page.replace("-", " ").title()
