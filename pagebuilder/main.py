import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from pagebuilder.config import settings
from pagebuilder.errors import PipelineError
from pagebuilder.observability import initialize_langfuse, shutdown_langfuse
from pagebuilder.routers import catalog, collab, editor, pages

logger = logging.getLogger(__name__)

_HTTP_ERROR_CODES = {
    400: "invalid_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    503: "unavailable",
}


@asynccontextmanager
async def _app_lifespan(_app: FastAPI) -> AsyncIterator[None]:
    initialize_langfuse()
    try:
        yield
    finally:
        shutdown_langfuse()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Page Builder API",
        default_response_class=ORJSONResponse,
        lifespan=_app_lifespan,
    )

    allow_origins = sorted(set(settings.BACKEND_CORS_ORIGINS))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(PipelineError)
    async def pipeline_error_handler(_request: Request, exc: PipelineError) -> ORJSONResponse:
        if exc.status_code >= 500:
            logger.warning(
                "Pipeline request failed",
                extra={"error": exc.error_code, "status_code": exc.status_code, "reason": exc.message},
            )
        return ORJSONResponse(status_code=exc.status_code, content=exc.payload())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(_request: Request, exc: RequestValidationError) -> ORJSONResponse:
        return ORJSONResponse(
            status_code=400,
            content={"ok": False, "error": "invalid_request", "detail": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(_request: Request, exc: HTTPException) -> ORJSONResponse:
        return ORJSONResponse(
            status_code=exc.status_code,
            content={
                "ok": False,
                "error": _HTTP_ERROR_CODES.get(exc.status_code, "http_error"),
                "detail": exc.detail,
            },
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(_request: Request, exc: Exception) -> ORJSONResponse:
        logger.exception("Unhandled server exception", exc_info=exc)
        return ORJSONResponse(
            status_code=500,
            content={"ok": False, "error": "internal_error", "detail": "Internal server error."},
        )

    @app.get("/health")
    async def health() -> dict[str, bool]:
        return {"ok": True}

    app.include_router(catalog.router)
    app.include_router(pages.router)
    app.include_router(editor.router)
    app.include_router(collab.router)

    return app


app = create_app()
