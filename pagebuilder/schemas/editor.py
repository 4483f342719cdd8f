from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SavePageRequest(BaseModel):
    site: str = Field(min_length=1)
    page: str = Field(min_length=1)
    html: str = Field(min_length=1)
    expectedVersionTag: str | None = None

    model_config = ConfigDict(extra="ignore")


class SavePageResponse(BaseModel):
    ok: bool = True
    versionTag: str
    enhanced: bool
    schemaType: str | None = None
    changes: list[str] = Field(default_factory=list)
    html: str | None = None


class BusinessContextPayload(BaseModel):
    businessName: str | None = None
    businessType: str | None = None
    description: str | None = None
    phone: str | None = None
    email: str | None = None
    address: str | None = None
    priceRange: str | None = None
    hours: str | None = None
    services: list[str] | None = None

    model_config = ConfigDict(extra="ignore")


class SchemaUpdateRequest(BaseModel):
    sectionHtml: str = Field(min_length=1)
    componentType: str | None = None
    pageUrl: str | None = None
    currentSchemas: list[dict[str, Any]] | None = None
    businessContext: BusinessContextPayload | None = None

    model_config = ConfigDict(extra="ignore")


class SchemaUpdateResponse(BaseModel):
    ok: bool = True
    schemas: list[dict[str, Any]]
    schemaType: str | None = None
    extractedData: dict[str, Any] | None = None


class AuditRequest(BaseModel):
    site: str = Field(min_length=1)
    page: str = Field(min_length=1)
    html: str = Field(min_length=1)

    model_config = ConfigDict(extra="ignore")


class BroadcastResponse(BaseModel):
    ok: bool = True
    delivered: int
