from __future__ import annotations

from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_project_root = Path(__file__).resolve().parents[1]
load_dotenv(_project_root / ".env", override=False)


class Settings(BaseSettings):
    ENVIRONMENT: str = "development"
    BACKEND_CORS_ORIGINS: list[str] = ["http://localhost:5173"]

    # Internal service-to-service calls (collab broadcast).
    INTERNAL_API_TOKEN: str | None = None

    ANTHROPIC_API_KEY: str | None = None
    ANTHROPIC_BASE_URL: str | None = None
    LLM_REQUEST_TIMEOUT_SECONDS: float = 120.0
    LLM_MODEL_CHEAP: str = "claude-sonnet-4-20250514"
    LLM_MODEL_EXPENSIVE: str = "claude-opus-4-5-20251101"
    LLM_MODEL_EXTRACT: str = "claude-haiku-4-5-20251001"

    COMPONENT_SERVICE_BASE_URL: str | None = None
    COMPONENT_SERVICE_PAGE_SIZE: int = 50
    COMPONENT_SERVICE_TIMEOUT_SECONDS: float = 20.0
    COMPONENT_SERVICE_MAX_PAGES: int = 100
    # When false, an unreachable content service degrades to "generate every slot".
    COMPONENT_INDEX_REQUIRED: bool = True

    # Host of the prebuilt industry sites; unset means bulk creation always synthesizes.
    INDUSTRY_TEMPLATE_BASE_URL: str | None = None
    INDUSTRY_TEMPLATE_TIMEOUT_SECONDS: float = 15.0

    ARTIFACT_STORE_BACKEND: Literal["s3", "memory"] = "memory"
    ARTIFACT_DRAFTS_ENVIRONMENT: str = "drafts"
    ARTIFACT_STORAGE_BUCKET: str | None = None
    ARTIFACT_STORAGE_ENDPOINT: str | None = None
    ARTIFACT_STORAGE_REGION: str = "us-east-1"
    ARTIFACT_STORAGE_ACCESS_KEY: str | None = None
    ARTIFACT_STORAGE_SECRET_KEY: str | None = None
    ARTIFACT_STORAGE_PREFIX: str = ""
    ARTIFACT_STORAGE_USE_SSL: bool = True
    ARTIFACT_STORAGE_FORCE_PATH_STYLE: bool = True

    QUALITY_GATE_THRESHOLD: int = 80
    QUALITY_GATE_MAX_ATTEMPTS: int = 3
    QUALITY_GATE_SCORER: Literal["model", "heuristic"] = "model"
    SECTION_FAILURE_POLICY: Literal["abort", "placeholder"] = "abort"

    SAVE_ENHANCEMENT_ENABLED: bool = True
    # Public origin of published sites; JSON-LD urls are "{SITE_PUBLIC_BASE_URL}/{site}/{page}.html".
    SITE_PUBLIC_BASE_URL: str | None = None

    AUDIT_SERVICE_URL: str | None = None
    AUDIT_PUBLIC_BASE_URL: str | None = None
    AUDIT_TIMEOUT_SECONDS: float = 60.0

    LANGFUSE_ENABLED: bool = False
    LANGFUSE_PUBLIC_KEY: str | None = None
    LANGFUSE_SECRET_KEY: str | None = None
    LANGFUSE_HOST: str = "https://cloud.langfuse.com"
    LANGFUSE_BASE_URL: str | None = None
    LANGFUSE_ENVIRONMENT: str | None = None
    LANGFUSE_RELEASE: str | None = None
    LANGFUSE_SAMPLE_RATE: float = 1.0
    LANGFUSE_DEBUG: bool = False
    LANGFUSE_REQUIRED: bool = False
    LANGFUSE_AUTH_CHECK: bool = True
    LANGFUSE_TIMEOUT_SECONDS: int = 20

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def split_origins(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @model_validator(mode="after")
    def validate_pipeline_config(self) -> "Settings":
        if not 0 <= self.QUALITY_GATE_THRESHOLD <= 100:
            raise ValueError("QUALITY_GATE_THRESHOLD must be between 0 and 100")
        if self.QUALITY_GATE_MAX_ATTEMPTS < 1:
            raise ValueError("QUALITY_GATE_MAX_ATTEMPTS must be at least 1")
        if self.COMPONENT_SERVICE_PAGE_SIZE < 1:
            raise ValueError("COMPONENT_SERVICE_PAGE_SIZE must be at least 1")
        if self.ARTIFACT_STORE_BACKEND == "s3" and not self.ARTIFACT_STORAGE_BUCKET:
            raise ValueError("ARTIFACT_STORAGE_BUCKET is required when ARTIFACT_STORE_BACKEND=s3")
        return self

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
