"""FastAPI application exposing repository analysis over HTTP."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from functools import partial
from pathlib import Path
from typing import Any, AsyncIterator, Callable, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from ..config import ConfigStore, load_config
from ..errors import (
    AnalysisError,
    ConfigError,
    FetchError,
    InvalidRequestError,
    UpstreamError,
)
from ..logging import get_logger
from ..orchestrator import Orchestrator

logger = get_logger("service")


class AnalyzeRequest(BaseModel):
    repo_url: str = ""
    branch: str = ""
    max_depth: int = 0


class ConfigUpdateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    cache_ttl: Optional[int] = Field(default=None, alias="cache_ttl_seconds")
    default_depth: Optional[int] = None
    request_timeout: Optional[int] = Field(default=None, alias="request_timeout_seconds")
    max_repo_size_mb: Optional[int] = None
    exclude_dirs: Optional[List[str]] = None
    include_data_files: bool = False
    include_documentation: bool = False


class Envelope(BaseModel):
    code: int
    message: str
    data: Optional[Any] = None


class HealthResponse(BaseModel):
    status: str


def _envelope(code: int, message: str, data: Any = None, status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"code": code, "message": message, "data": data},
    )


def _default_orchestrator(config_path: Path | None = None) -> Orchestrator:
    return Orchestrator(config_store=ConfigStore(load_config(config_path)))


def create_app(
    orchestrator_factory: Callable[[], Orchestrator] | None = None,
    *,
    config_path: Path | None = None,
) -> FastAPI:
    """Create the FastAPI application; one orchestrator (and cache) serves every request."""
    factory = orchestrator_factory or partial(_default_orchestrator, config_path)
    orchestrator = factory()

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        orchestrator.cache.start()
        try:
            yield
        finally:
            orchestrator.close()

    app = FastAPI(title="repoloc", version="0.1.0", lifespan=lifespan)
    app.state.orchestrator = orchestrator
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/api/analyze", response_model=Envelope)
    async def analyze(payload: AnalyzeRequest) -> Envelope:
        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(
            None,
            partial(
                orchestrator.analyze,
                payload.repo_url,
                payload.branch,
                payload.max_depth,
            ),
        )
        return Envelope(code=0, message="success", data=result.to_dict())

    @app.get("/api/config", response_model=Envelope)
    async def get_config() -> Envelope:
        return Envelope(code=0, message="success", data=orchestrator.config().to_public_dict())

    @app.post("/api/config", response_model=Envelope)
    async def update_config(payload: ConfigUpdateRequest) -> Envelope:
        update = orchestrator.update_config(payload.model_dump(exclude_none=True))
        return Envelope(code=0, message="success", data=update.config.to_public_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
        details = "; ".join(
            f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg', '')}"
            for error in exc.errors()
        )
        return _envelope(400, f"Invalid JSON: {details}")

    @app.exception_handler(InvalidRequestError)
    async def invalid_request_handler(_: Request, exc: InvalidRequestError) -> JSONResponse:
        return _envelope(400, str(exc))

    @app.exception_handler(ConfigError)
    async def config_error_handler(_: Request, exc: ConfigError) -> JSONResponse:
        return _envelope(400, f"Invalid configuration: {exc}")

    @app.exception_handler(UpstreamError)
    async def upstream_error_handler(_: Request, exc: UpstreamError) -> JSONResponse:
        logger.warning("Pre-flight check failed: %s", exc)
        return _envelope(500, f"Analysis failed: {exc}")

    @app.exception_handler(FetchError)
    async def fetch_error_handler(_: Request, exc: FetchError) -> JSONResponse:
        logger.warning("Fetch failed: %s", exc)
        return _envelope(500, f"Analysis failed: {exc}")

    @app.exception_handler(AnalysisError)
    async def analysis_error_handler(_: Request, exc: AnalysisError) -> JSONResponse:
        return _envelope(500, "Internal Server Error: analysis failed")

    @app.exception_handler(Exception)
    async def unexpected_error_handler(_: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error while serving request")
        return _envelope(500, f"Internal Server Error: {exc}", status_code=500)

    return app


def run_service(
    host: str = "0.0.0.0", port: int = 8080, config_path: Path | None = None
) -> None:  # pragma: no cover - integration path
    import uvicorn

    app = create_app(config_path=config_path)
    logger.info("repoloc service starting on %s:%d", host, port)
    uvicorn.run(app, host=host, port=port)


__all__ = ["create_app", "run_service"]
