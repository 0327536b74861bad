"""FastAPI application: wiring, error mapping and the ``checkup-api`` entry point."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api import health, routes
from app.api.auth import JwtTokenVerifier
from app.config.settings import Settings
from app.database.connection import close_pool, ensure_schema, init_pool
from app.database.repositories.report_repository import PostgresReportRepository
from app.logging.logger import Log
from app.processor.exceptions import NotFoundError, ValidationError
from app.processor.processor import build_processor
from app.processor.service import build_report_service
from app.worker.job_runner import JobRunner
from app.worker.pool import WorkerPool, build_worker_pool

SHUTDOWN_TIMEOUT_SECONDS = 30.0


def install_exception_handlers(app: FastAPI) -> None:
    """Render every error as ``{"error": ...}``."""

    @app.exception_handler(ValidationError)
    async def _validation_error(_: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(NotFoundError)
    async def _not_found(_: Request, exc: NotFoundError) -> JSONResponse:
        # Foreign and missing reports answer the same.
        return JSONResponse(status_code=404, content={"error": "Report not found"})

    @app.exception_handler(RequestValidationError)
    async def _request_invalid(_: Request, exc: RequestValidationError) -> JSONResponse:
        missing = [
            ".".join(str(part) for part in error.get("loc", ())[1:])
            for error in exc.errors()
            if error.get("type") == "missing"
        ]
        message = f"Missing required field: {', '.join(missing)}" if missing else "Invalid request"
        return JSONResponse(status_code=400, content={"error": message})

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(_: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )


def create_app(settings: Settings | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        resolved = settings or Settings()
        Log.configure(resolved.log_level)
        Log.info("Checkup API starting", env=resolved.app_env)
        init_pool(resolved)
        pool: WorkerPool | None = None
        try:
            ensure_schema()
            report_repo = PostgresReportRepository()
            if resolved.embedded_worker:
                job_runner = JobRunner(build_processor(resolved, report_repo))
                pool = build_worker_pool(resolved, report_repo, job_runner)
                pool.start()
            app.state.settings = resolved
            app.state.worker_pool = pool
            app.state.report_service = build_report_service(
                resolved,
                report_repo,
                on_intake=pool.notify if pool is not None else None,
            )
            app.state.token_verifier = JwtTokenVerifier(resolved.jwt_secret, resolved.jwt_algorithm)
            if not resolved.jwt_secret:
                Log.warning("JWT secret is not set, every request will be rejected")
            Log.info("Checkup API ready", embedded_worker=resolved.embedded_worker)
            yield
        finally:
            Log.info("Checkup API shutting down")
            if pool is not None:
                pool.stop(SHUTDOWN_TIMEOUT_SECONDS)
            close_pool()

    app = FastAPI(
        title="checkup-analysis",
        description="Checkup report extraction and AI health analysis",
        version="0.1.0",
        lifespan=lifespan,
    )
    install_exception_handlers(app)
    app.include_router(routes.router)
    app.include_router(health.router)
    return app


def run() -> None:
    settings = Settings()
    uvicorn.run(create_app(settings), host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    run()
