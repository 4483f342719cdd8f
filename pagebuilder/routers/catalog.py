from fastapi import APIRouter

from pagebuilder.schemas import IndustryDefaultsPayload, IndustrySummary, TemplateSummary
from pagebuilder.services.page_templates import list_industries, list_templates, page_slug

router = APIRouter(prefix="/api", tags=["catalog"])


@router.get("/templates")
async def get_templates() -> dict:
    templates = [
        TemplateSummary(
            key=template.key,
            name=template.name,
            slug=page_slug(template.key),
            schemaType=template.schema_type,
            description=template.description,
            sections=list(template.sections),
            titleFormat=template.seo_title_format,
            guidelines=list(template.guidelines),
        )
        for template in list_templates()
    ]
    return {"ok": True, "templates": [item.model_dump() for item in templates]}


@router.get("/industries")
async def get_industries() -> dict:
    industries = [
        IndustrySummary(
            key=profile.key,
            label=profile.label,
            recommendedPages=list(profile.recommended_pages),
            defaults=IndustryDefaultsPayload(
                tagline=profile.defaults.tagline,
                tone=profile.defaults.tone,
                audience=profile.defaults.target_audience,
                services=list(profile.defaults.services),
                usps=list(profile.defaults.unique_selling_points),
                hours=profile.defaults.hours,
                priceRange=profile.defaults.price_range,
                primaryColor=profile.defaults.primary_color,
            ),
        )
        for profile in list_industries()
    ]
    return {"ok": True, "industries": [item.model_dump() for item in industries]}
