from fastapi import APIRouter, Depends, Query

from pagebuilder.config import settings
from pagebuilder.deps import get_artifact_store, get_page_synthesizer
from pagebuilder.errors import InvalidRequestError
from pagebuilder.schemas import (
    CreatePageRequest,
    CreatePageResponse,
    CreateSiteRequest,
    CreateSiteResponse,
    ListPagesResponse,
    PageListing,
)
from pagebuilder.services.artifact_store import ArtifactStore
from pagebuilder.services.page_synthesis import PageSynthesizer
from pagebuilder.services.page_templates import build_brand_context, get_industry

router = APIRouter(prefix="/api", tags=["pages"])


def _require_industry(key: str | None):
    if not key:
        return None
    profile = get_industry(key)
    if profile is None:
        raise InvalidRequestError(message=f"Unknown industry: {key}")
    return profile


@router.post("/pages", response_model=CreatePageResponse)
async def create_page(
    payload: CreatePageRequest,
    synthesizer: PageSynthesizer = Depends(get_page_synthesizer),
) -> CreatePageResponse:
    profile = _require_industry(payload.industry)
    brand_context = build_brand_context(industry=profile, extra=payload.brandContext)
    result = await synthesizer.synthesize(
        site=payload.site,
        page_name=payload.pageName,
        template_key=payload.template or payload.pageName,
        brand_context=brand_context,
    )
    return CreatePageResponse(
        pageName=result.page_name,
        slug=result.slug,
        score=result.score,
        versionTag=result.version_tag,
        attempts=result.attempts,
    )


@router.get("/pages", response_model=ListPagesResponse)
async def list_pages(
    site: str = Query(min_length=1),
    store: ArtifactStore = Depends(get_artifact_store),
) -> ListPagesResponse:
    listings = await store.list(f"{site}/{settings.ARTIFACT_DRAFTS_ENVIRONMENT}/")
    return ListPagesResponse(
        site=site,
        pages=[
            PageListing(
                key=item.key,
                size=item.size,
                versionTag=item.version_tag,
                lastModified=item.timestamp,
            )
            for item in listings
        ],
    )


@router.post("/sites", response_model=CreateSiteResponse)
async def create_site(
    payload: CreateSiteRequest,
    synthesizer: PageSynthesizer = Depends(get_page_synthesizer),
) -> CreateSiteResponse:
    _require_industry(payload.industry)
    result = await synthesizer.create_site(
        business_name=payload.businessName.strip(),
        industry=payload.industry,
        brand_context=payload.brandContext,
        pages=payload.pages,
    )
    return CreateSiteResponse.from_result(result.site, result.pages, result.failures)
