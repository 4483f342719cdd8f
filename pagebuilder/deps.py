from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from pagebuilder.config import settings
from pagebuilder.llm.client import GenerativeTextClient
from pagebuilder.services.artifact_store import ArtifactStore, build_artifact_store
from pagebuilder.services.collab import RoomRegistry, room_registry
from pagebuilder.services.component_index import ComponentServiceClient
from pagebuilder.services.industry_templates import IndustryTemplateClient
from pagebuilder.services.page_audit import PageAuditor
from pagebuilder.services.page_saves import PageSaver
from pagebuilder.services.page_synthesis import PageSynthesizer
from pagebuilder.services.quality_gate import build_scorer
from pagebuilder.services.save_enhancer import SaveEnhancer
from pagebuilder.services.schema_update import SchemaUpdater
from pagebuilder.services.section_resolver import SectionResolver


@lru_cache
def get_llm_client() -> GenerativeTextClient:
    return GenerativeTextClient()


@lru_cache
def get_artifact_store() -> ArtifactStore:
    # One instance per process so the memory backend survives across requests.
    return build_artifact_store()


def get_component_client() -> ComponentServiceClient:
    return ComponentServiceClient()


def get_room_registry() -> RoomRegistry:
    return room_registry


def get_page_synthesizer(
    llm: GenerativeTextClient = Depends(get_llm_client),
    store: ArtifactStore = Depends(get_artifact_store),
    components: ComponentServiceClient = Depends(get_component_client),
) -> PageSynthesizer:
    return PageSynthesizer(
        components=components,
        resolver=SectionResolver(llm),
        scorer=build_scorer(llm),
        store=store,
        site_url_base=settings.SITE_PUBLIC_BASE_URL,
        templates=IndustryTemplateClient(),
    )


def get_page_saver(
    llm: GenerativeTextClient = Depends(get_llm_client),
    store: ArtifactStore = Depends(get_artifact_store),
    rooms: RoomRegistry = Depends(get_room_registry),
) -> PageSaver:
    return PageSaver(
        store=store,
        enhancer=SaveEnhancer(llm),
        rooms=rooms,
        site_url_base=settings.SITE_PUBLIC_BASE_URL,
    )


def get_schema_updater(llm: GenerativeTextClient = Depends(get_llm_client)) -> SchemaUpdater:
    return SchemaUpdater(llm)


def get_page_auditor(store: ArtifactStore = Depends(get_artifact_store)) -> PageAuditor:
    return PageAuditor(store)
