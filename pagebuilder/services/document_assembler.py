from __future__ import annotations

import json
import re
from dataclasses import dataclass
from html import escape
from typing import Any, Optional, Sequence

from pagebuilder.services.page_templates import TemplateDefinition
from pagebuilder.services.section_resolver import SectionFragment

BOOTSTRAP_CSS = "https://cdn.jsdelivr.net/npm/bootstrap@5.3.3/dist/css/bootstrap.min.css"
BOOTSTRAP_ICONS_CSS = "https://cdn.jsdelivr.net/npm/bootstrap-icons@1.11.3/font/bootstrap-icons.min.css"
BOOTSTRAP_JS = "https://cdn.jsdelivr.net/npm/bootstrap@5.3.3/dist/js/bootstrap.bundle.min.js"
META_DESCRIPTION_MAX = 160
DEFAULT_PRIMARY_COLOR = "#0d6efd"

_TOKEN_RE = re.compile(r"\{[^}]+\}")
_COLOR_RE = re.compile(r"Primary Color:\s*(#[0-9a-fA-F]{3,8})", re.IGNORECASE)


@dataclass(frozen=True)
class BrandFields:
    business_name: str
    tagline: str
    industry: str
    services: tuple[str, ...]
    primary_color: str


def _field(brand_context: str, label: str) -> str:
    match = re.search(rf"{re.escape(label)}:\s*(.+)", brand_context, re.IGNORECASE)
    return match.group(1).strip() if match else ""


def parse_brand_fields(brand_context: str) -> BrandFields:
    services_line = _field(brand_context, "Services")
    color = _COLOR_RE.search(brand_context)
    return BrandFields(
        business_name=_field(brand_context, "Business Name") or "Business",
        tagline=_field(brand_context, "Tagline"),
        industry=_field(brand_context, "Industry"),
        services=tuple(s.strip() for s in services_line.split(",") if s.strip()),
        primary_color=color.group(1) if color else DEFAULT_PRIMARY_COLOR,
    )


def render_title(template: TemplateDefinition, brand: BrandFields) -> str:
    """Fill ``{Brand}`` and ``{Tagline}``; any other token falls back to the business name."""
    title = template.seo_title_format.replace("{Brand}", brand.business_name, 1)
    title = title.replace("{Tagline}", brand.tagline, 1)
    title = _TOKEN_RE.sub(brand.business_name, title)
    return title.strip(" -|") or brand.business_name


def render_meta_description(template: TemplateDefinition, brand: BrandFields) -> str:
    parts = brand.business_name
    if brand.industry:
        parts += f", {brand.industry}"
    text = f"{parts}. {template.description}"
    if brand.services:
        text += f". {', '.join(brand.services[:3])}"
    return f"{text}."[:META_DESCRIPTION_MAX]


def build_page_schema(
    template: TemplateDefinition,
    brand: BrandFields,
    description: str,
    *,
    canonical_url: Optional[str] = None,
) -> dict[str, Any]:
    schema: dict[str, Any] = {
        "@context": "https://schema.org",
        "@type": template.schema_type,
        "name": brand.business_name,
        "description": description,
    }
    if canonical_url:
        schema["url"] = canonical_url
    if brand.tagline:
        schema["slogan"] = brand.tagline
    if brand.services:
        schema["knowsAbout"] = list(brand.services[:5])
    return schema


def json_ld_script(schema: dict[str, Any]) -> str:
    payload = json.dumps(schema, ensure_ascii=False).replace("</", "<\\/")
    return f'<script type="application/ld+json">{payload}</script>'


def assemble_document(
    fragments: Sequence[SectionFragment],
    template: TemplateDefinition,
    brand_context: str,
    *,
    canonical_url: Optional[str] = None,
) -> str:
    """Stitch ordered fragments into the shared Bootstrap shell with title, meta and JSON-LD."""
    brand = parse_brand_fields(brand_context)
    title = render_title(template, brand)
    description = render_meta_description(template, brand)
    schema = build_page_schema(template, brand, description, canonical_url=canonical_url)

    head = [
        '  <meta charset="UTF-8">',
        '  <meta name="viewport" content="width=device-width, initial-scale=1.0">',
        f"  <title>{escape(title, quote=False)}</title>",
        f'  <meta name="description" content="{escape(description)}">',
    ]
    if canonical_url:
        head.append(f'  <link rel="canonical" href="{escape(canonical_url)}">')
    head.extend(
        [
            f'  <meta name="theme-color" content="{escape(brand.primary_color)}">',
            f'  <link href="{BOOTSTRAP_CSS}" rel="stylesheet">',
            f'  <link href="{BOOTSTRAP_ICONS_CSS}" rel="stylesheet">',
            f"  {json_ld_script(schema)}",
        ]
    )
    body = "\n".join(fragment.html for fragment in fragments)
    return (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n'
        "<head>\n"
        + "\n".join(head)
        + "\n</head>\n<body>\n<main>\n"
        + body
        + f'\n</main>\n<script src="{BOOTSTRAP_JS}"></script>\n</body>\n</html>\n'
    )
