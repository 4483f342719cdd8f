from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from pagebuilder.llm.client import (
    GenerativeTextClient,
    LLMGenerationParams,
    MalformedGenerationError,
    ModelTier,
    ToolSpec,
)
from pagebuilder.services.schema_registry import (
    BusinessFacts,
    build_faq_schema,
    build_schema_from_context,
    get_recommended_schema,
)

logger = logging.getLogger(__name__)

EXTRACT_MAX_TOKENS = 2048
SECTION_HTML_CHARS = 6000

EXTRACT_SYSTEM_PROMPT = """You are a Schema.org data extraction expert. Given HTML content, extract business information that can be used to generate structured data.

RULES:
1. Extract the business name from h1, logo text, or meta tags
2. Detect the business type from context (restaurant, law firm, yoga studio, etc.)
3. Write a concise description (150-160 chars) suitable for SEO
4. Extract contact info: phone, email, address if present
5. Extract services/products mentioned
6. Extract FAQ items from accordion or details elements
7. Only include data that is actually present in the HTML"""

EXTRACT_TOOL = ToolSpec(
    name="extract_business_data",
    description="Extract business information from HTML content for Schema.org markup.",
    input_schema={
        "type": "object",
        "properties": {
            "businessType": {
                "type": "string",
                "description": 'Detected business type (e.g., "restaurant", "law firm", "yoga studio", "saas")',
            },
            "businessName": {"type": "string", "description": "Business or organization name"},
            "description": {"type": "string", "description": "Business description (150-160 chars for SEO)"},
            "phone": {"type": "string", "description": "Phone number if found"},
            "email": {"type": "string", "description": "Email if found"},
            "address": {"type": "string", "description": "Full address if found"},
            "priceRange": {"type": "string", "enum": ["$", "$$", "$$$", "$$$$"], "description": "Price range indicator"},
            "hours": {"type": "string", "description": "Business hours"},
            "services": {"type": "array", "items": {"type": "string"}, "description": "Services or products offered"},
            "faqs": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {"question": {"type": "string"}, "answer": {"type": "string"}},
                    "required": ["question", "answer"],
                },
                "description": "FAQ items from accordion/details elements",
            },
        },
        "required": ["businessType", "businessName", "description"],
    },
)

_MERGED_FIELDS = ("phone", "email", "address", "priceRange", "hours")


@dataclass
class SchemaUpdateResult:
    schemas: list[dict[str, Any]]
    schema_type: Optional[str] = None
    extracted: dict[str, Any] = field(default_factory=dict)


def _pick(extracted: dict[str, Any], context: dict[str, Any], key: str) -> Any:
    return extracted.get(key) or context.get(key) or None


def merge_business_context(
    extracted: dict[str, Any],
    context: Optional[dict[str, Any]],
    *,
    page_url: Optional[str],
) -> BusinessFacts:
    """Extracted values win; the caller's context only fills the gaps."""
    context = context or {}
    values = {key: _pick(extracted, context, key) for key in _MERGED_FIELDS}
    services = _pick(extracted, context, "services") or []
    return BusinessFacts(
        business_name=_pick(extracted, context, "businessName") or "Business",
        business_type=_pick(extracted, context, "businessType") or "local business",
        description=_pick(extracted, context, "description") or "",
        phone=values["phone"],
        email=values["email"],
        address=values["address"],
        price_range=values["priceRange"],
        hours=values["hours"],
        services=[str(item) for item in services if isinstance(item, str)],
        site_url=page_url,
    )


class SchemaUpdater:
    def __init__(self, llm: GenerativeTextClient) -> None:
        self._llm = llm

    async def update(
        self,
        section_html: str,
        *,
        component_type: Optional[str] = None,
        page_url: Optional[str] = None,
        business_context: Optional[dict[str, Any]] = None,
        current_schemas: Optional[list[dict[str, Any]]] = None,
    ) -> SchemaUpdateResult:
        prompt = (
            f"Extract business data from this HTML section ({component_type or 'unknown'} component):\n\n"
            f"{section_html[:SECTION_HTML_CHARS]}"
        )
        try:
            extracted = await self._llm.call_tool(
                prompt,
                LLMGenerationParams(
                    tier=ModelTier.EXTRACT,
                    max_tokens=EXTRACT_MAX_TOKENS,
                    system=EXTRACT_SYSTEM_PROMPT,
                ),
                tool=EXTRACT_TOOL,
            )
        except MalformedGenerationError:
            extracted = {}
        if not extracted:
            logger.info("Schema extraction returned nothing", extra={"component_type": component_type})
            return SchemaUpdateResult(schemas=list(current_schemas or []))

        facts = merge_business_context(extracted, business_context, page_url=page_url)
        schema_type = get_recommended_schema(facts.business_type)
        schemas = [build_schema_from_context(schema_type, facts, page_url or "")]

        faqs = [
            {"question": str(item["question"]), "answer": str(item["answer"])}
            for item in extracted.get("faqs") or []
            if isinstance(item, dict) and item.get("question") and item.get("answer")
        ]
        faq_schema = build_faq_schema(faqs)
        if faq_schema is not None:
            schemas.append(faq_schema)

        return SchemaUpdateResult(schemas=schemas, schema_type=schema_type, extracted=extracted)
