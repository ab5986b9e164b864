"""Thin HTTP wrapper exposing platform searches over FastAPI.

Endpoints:
  GET  /health                    liveness + uptime
  GET  /platforms                 supported platform ids
  POST /{platform}/jobs/search    body {filters, maxJobs} → records
"""

import logging
import time
from collections.abc import Callable
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.core.config import SearchFilters, Settings
from src.core.schemas import JobRecord
from src.platforms import get_adapter, is_supported, supported_platforms
from src.platforms.base import PlatformAdapter

logger = logging.getLogger(__name__)

AdapterFactory = Callable[[str, Settings], PlatformAdapter]


class JobSearchRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    filters: SearchFilters = Field(default_factory=SearchFilters)
    max_jobs: int = Field(default=10, ge=1, le=1000, alias="maxJobs")


class JobSearchResponse(BaseModel):
    success: bool
    platform: str
    count: int
    data: list[JobRecord] = Field(default_factory=list)
    error: str | None = None
    timestamp: str


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _error_response(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error, "timestamp": _now()},
    )


def _describe_validation(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg', 'invalid')}" if loc else err.get("msg", "invalid"))
    return "Invalid request: " + "; ".join(parts)


def create_app(
    settings_loader: Callable[[], Settings],
    adapter_factory: AdapterFactory = get_adapter,
) -> FastAPI:
    """Build the app. Settings are loaded per request so config edits apply."""
    app = FastAPI(title="LinkedIn Job Acquisition API")
    started = time.monotonic()

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error_response(422, _describe_validation(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404:
            return _error_response(404, f"Route {request.method} {request.url.path} not found")
        return _error_response(exc.status_code, str(exc.detail))

    @app.get("/health")
    def health() -> dict[str, object]:
        return {
            "status": "healthy",
            "uptime": time.monotonic() - started,
            "timestamp": _now(),
        }

    @app.get("/platforms")
    def platforms() -> dict[str, object]:
        names = supported_platforms()
        return {"success": True, "platforms": names, "data": names, "timestamp": _now()}

    @app.post("/{platform}/jobs/search", response_model=JobSearchResponse)
    async def search_jobs(platform: str, request: JobSearchRequest) -> JSONResponse:
        if not is_supported(platform):
            body = JobSearchResponse(
                success=False,
                platform=platform,
                count=0,
                error=(
                    f"Unsupported platform: {platform}. "
                    f"Supported platforms: {', '.join(supported_platforms())}"
                ),
                timestamp=_now(),
            )
            return JSONResponse(status_code=400, content=body.model_dump(mode="json"))

        try:
            adapter = adapter_factory(platform, settings_loader())
            async with adapter:
                records = await adapter.search(request.filters, request.max_jobs)
        except Exception as e:
            logger.exception("Search on %s failed", platform)
            body = JobSearchResponse(
                success=False, platform=platform, count=0, error=str(e), timestamp=_now(),
            )
            return JSONResponse(status_code=500, content=body.model_dump(mode="json"))

        body = JobSearchResponse(
            success=True,
            platform=platform,
            count=len(records),
            data=records,
            timestamp=_now(),
        )
        return JSONResponse(status_code=200, content=body.model_dump(mode="json"))

    return app
