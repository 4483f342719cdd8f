from fastapi import APIRouter, BackgroundTasks, Depends, Query
from fastapi.responses import HTMLResponse, ORJSONResponse

from pagebuilder.deps import get_page_auditor, get_page_saver, get_schema_updater
from pagebuilder.schemas import (
    AuditRequest,
    SavePageRequest,
    SavePageResponse,
    SchemaUpdateRequest,
    SchemaUpdateResponse,
)
from pagebuilder.services.page_audit import AuditServiceError, PageAuditor
from pagebuilder.services.page_saves import PageSaver
from pagebuilder.services.schema_update import SchemaUpdater

router = APIRouter(prefix="/api", tags=["editor"])


@router.post("/save", response_model=SavePageResponse, response_model_exclude_none=True)
async def save_page(
    payload: SavePageRequest,
    saver: PageSaver = Depends(get_page_saver),
) -> SavePageResponse:
    result = await saver.save(
        site=payload.site,
        page=payload.page,
        html=payload.html,
        expected_version_tag=payload.expectedVersionTag,
    )
    return SavePageResponse(
        versionTag=result.version_tag,
        enhanced=result.enhanced,
        schemaType=result.schema_type,
        changes=result.changes,
        html=result.html if result.enhanced else None,
    )


@router.post("/schema-update", response_model=SchemaUpdateResponse, response_model_exclude_none=True)
async def schema_update(
    payload: SchemaUpdateRequest,
    updater: SchemaUpdater = Depends(get_schema_updater),
) -> SchemaUpdateResponse:
    context = payload.businessContext.model_dump(exclude_none=True) if payload.businessContext else None
    result = await updater.update(
        payload.sectionHtml,
        component_type=payload.componentType,
        page_url=payload.pageUrl,
        business_context=context,
        current_schemas=payload.currentSchemas,
    )
    return SchemaUpdateResponse(
        schemas=result.schemas,
        schemaType=result.schema_type,
        extractedData=result.extracted or None,
    )


@router.post("/audit")
async def audit_page(
    payload: AuditRequest,
    background_tasks: BackgroundTasks,
    auditor: PageAuditor = Depends(get_page_auditor),
):
    temp = await auditor.publish_temp_copy(payload.site, payload.html)
    # Runs after the response is sent, whether the audit succeeded or not.
    background_tasks.add_task(auditor.cleanup, temp)
    try:
        report = await auditor.run_audit(temp)
    except AuditServiceError as exc:
        body = exc.payload()
        body["tempUrl"] = temp.public_url
        return ORJSONResponse(status_code=exc.status_code, content=body, background=background_tasks)
    return {"ok": True, **report}


@router.get("/audit-temp", response_class=HTMLResponse)
async def audit_temp_copy(
    site: str = Query(min_length=1),
    id: str = Query(min_length=1),
    auditor: PageAuditor = Depends(get_page_auditor),
):
    html = await auditor.read_temp_copy(site, id)
    if html is None:
        return HTMLResponse("Temp file not found or expired", status_code=404)
    return HTMLResponse(html, headers={"Cache-Control": "no-store"})
