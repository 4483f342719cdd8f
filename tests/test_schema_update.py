from __future__ import annotations

import asyncio
from typing import Any

from pagebuilder.llm.client import LLMGenerationParams, MalformedGenerationError, ModelTier, ToolSpec
from pagebuilder.services.schema_update import (
    SECTION_HTML_CHARS,
    SchemaUpdater,
    merge_business_context,
)


class ExtractingLLM:
    def __init__(self, payload: dict[str, Any] | None = None, *, malformed: bool = False) -> None:
        self.payload = payload or {}
        self.malformed = malformed
        self.calls: list[tuple[str, LLMGenerationParams, ToolSpec]] = []

    async def call_tool(self, prompt: str, params: LLMGenerationParams, *, tool: ToolSpec) -> dict[str, Any]:
        self.calls.append((prompt, params, tool))
        if self.malformed:
            raise MalformedGenerationError(message="no tool call")
        return dict(self.payload)


def test_update_builds_primary_and_faq_schemas():
    llm = ExtractingLLM(
        {
            "businessType": "restaurant",
            "businessName": "Casa Verde",
            "description": "Wood-fired tacos",
            "faqs": [{"question": "Do you cater?", "answer": "Yes, for up to 200 guests."}],
        }
    )

    result = asyncio.run(
        SchemaUpdater(llm).update(  # type: ignore[arg-type]
            "<section><h2>FAQ</h2></section>",
            component_type="FAQ",
            page_url="https://sites.example/casa/index.html",
            business_context={"phone": "555-0100", "businessName": "Ignored Name"},
        )
    )

    prompt, params, tool = llm.calls[0]
    assert "(FAQ component)" in prompt
    assert params.tier is ModelTier.EXTRACT
    assert tool.name == "extract_business_data"
    assert result.schema_type == "Restaurant"
    assert [schema["@type"] for schema in result.schemas] == ["Restaurant", "FAQPage"]
    assert result.schemas[0]["name"] == "Casa Verde"
    assert result.schemas[0]["telephone"] == "555-0100"
    assert result.schemas[0]["url"] == "https://sites.example/casa/index.html"
    assert result.extracted["businessName"] == "Casa Verde"


def test_update_truncates_long_sections():
    llm = ExtractingLLM({"businessName": "Casa"})

    asyncio.run(SchemaUpdater(llm).update("x" * (SECTION_HTML_CHARS + 500)))  # type: ignore[arg-type]

    prompt = llm.calls[0][0]
    assert prompt.count("x") <= SECTION_HTML_CHARS + 5


def test_empty_extraction_keeps_current_schemas():
    current = [{"@context": "https://schema.org", "@type": "LocalBusiness", "name": "Casa"}]

    result = asyncio.run(SchemaUpdater(ExtractingLLM({})).update("<section></section>", current_schemas=current))  # type: ignore[arg-type]

    assert result.schemas == current
    assert result.schema_type is None


def test_malformed_extraction_keeps_current_schemas():
    current = [{"@type": "Restaurant"}]

    result = asyncio.run(
        SchemaUpdater(ExtractingLLM(malformed=True)).update("<section></section>", current_schemas=current)  # type: ignore[arg-type]
    )

    assert result.schemas == current


def test_merge_business_context_prefers_extracted_values():
    facts = merge_business_context(
        {"businessName": "Casa Verde", "hours": ""},
        {"businessName": "Old", "hours": "Mon-Fri 9am-5pm", "services": ["Tacos", 4]},
        page_url="https://sites.example/casa",
    )

    assert facts.business_name == "Casa Verde"
    assert facts.hours == "Mon-Fri 9am-5pm"
    assert facts.services == ["Tacos"]
    assert facts.business_type == "local business"
    assert facts.site_url == "https://sites.example/casa"
