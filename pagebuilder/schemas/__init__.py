from pagebuilder.schemas.editor import (
    AuditRequest,
    BroadcastResponse,
    BusinessContextPayload,
    SavePageRequest,
    SavePageResponse,
    SchemaUpdateRequest,
    SchemaUpdateResponse,
)
from pagebuilder.schemas.pages import (
    CreatedPage,
    CreatePageRequest,
    CreatePageResponse,
    CreateSiteRequest,
    CreateSiteResponse,
    FailedPage,
    IndustryDefaultsPayload,
    IndustrySummary,
    ListPagesResponse,
    PageListing,
    TemplateSummary,
)

__all__ = [
    "AuditRequest",
    "BroadcastResponse",
    "BusinessContextPayload",
    "SavePageRequest",
    "SavePageResponse",
    "SchemaUpdateRequest",
    "SchemaUpdateResponse",
    "CreatedPage",
    "CreatePageRequest",
    "CreatePageResponse",
    "CreateSiteRequest",
    "CreateSiteResponse",
    "FailedPage",
    "IndustryDefaultsPayload",
    "IndustrySummary",
    "ListPagesResponse",
    "PageListing",
    "TemplateSummary",
]
