from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from file_probe.api.router import api_router
from file_probe.core.config import settings
from file_probe.core.logger import configure_logging, get_logger
from file_probe.services.probe_service import PathNotAllowedError

configure_logging()
logger = get_logger(component="FastAPI")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "File probe service starting",
        environment=settings.environment,
        hash_chunk_size=settings.hash_chunk_size,
        hash_max_concurrency=settings.hash_max_concurrency,
        probe_root=str(settings.probe_root) if settings.probe_root else None,
    )
    yield
    logger.info("File probe service stopped")


def create_app() -> FastAPI:
    app = FastAPI(title=settings.project_name, version="1.0.0", lifespan=lifespan)

    @app.exception_handler(PathNotAllowedError)
    async def handle_path_not_allowed(_: Request, exc: PathNotAllowedError) -> JSONResponse:
        return JSONResponse(status_code=403, content={"detail": str(exc), "error_code": "PATH_NOT_ALLOWED"})

    app.include_router(api_router, prefix=settings.api_v1_prefix)

    @app.get("/healthz", tags=["health"])
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()
