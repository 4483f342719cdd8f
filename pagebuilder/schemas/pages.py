from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TemplateSummary(BaseModel):
    key: str
    name: str
    slug: str
    schemaType: str
    description: str
    sections: list[str]
    titleFormat: str
    guidelines: list[str]


class IndustryDefaultsPayload(BaseModel):
    tagline: str
    tone: str
    audience: str
    services: list[str]
    usps: list[str]
    hours: str
    priceRange: str
    primaryColor: str


class IndustrySummary(BaseModel):
    key: str
    label: str
    recommendedPages: list[str]
    defaults: IndustryDefaultsPayload


class CreatePageRequest(BaseModel):
    site: str = Field(min_length=1)
    pageName: str = Field(min_length=1)
    template: str | None = None
    brandContext: str | None = None
    industry: str | None = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("site", "pageName")
    @classmethod
    def _strip(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class CreatePageResponse(BaseModel):
    ok: bool = True
    pageName: str
    slug: str
    score: int
    versionTag: str
    attempts: int


class PageListing(BaseModel):
    key: str
    size: int
    versionTag: str
    lastModified: datetime | None = None


class ListPagesResponse(BaseModel):
    ok: bool = True
    site: str
    pages: list[PageListing]


class CreateSiteRequest(BaseModel):
    businessName: str = Field(min_length=1)
    industry: str | None = None
    brandContext: str | None = None
    pages: list[str] | None = None

    model_config = ConfigDict(extra="ignore")


class CreatedPage(BaseModel):
    pageName: str
    score: int
    versionTag: str


class FailedPage(BaseModel):
    pageName: str
    error: str
    score: int | None = None


class CreateSiteResponse(BaseModel):
    ok: bool
    site: str
    created: list[CreatedPage]
    failed: list[FailedPage]

    @classmethod
    def from_result(cls, site: str, created: list[dict[str, Any]], failed: list[dict[str, Any]]) -> "CreateSiteResponse":
        return cls(
            ok=bool(created),
            site=site,
            created=[CreatedPage(**item) for item in created],
            failed=[FailedPage(**item) for item in failed],
        )
