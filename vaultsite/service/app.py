"""FastAPI application that triggers vaultsite generation runs."""

from __future__ import annotations

import asyncio
import threading
from typing import Any, Callable, List, Optional

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..config import ConfigError
from ..models import GenerationReport
from ..orchestrator import GenerationError, Orchestrator


class GenerateRequest(BaseModel):
    vault: str
    output_dir: Optional[str] = None
    site_name: Optional[str] = None
    allow_private_folders: Optional[bool] = None
    check_fonts: Optional[bool] = None


class FailureModel(BaseModel):
    path: str
    error: str


class GenerateResponse(BaseModel):
    status: str
    output_root: str
    pages: int
    assets: int
    failures: List[FailureModel] = []


class HealthResponse(BaseModel):
    status: str
    running: bool


class RunInProgressError(RuntimeError):
    """Raised when a generation is requested while another one is active."""


def _default_orchestrator() -> Orchestrator:
    return Orchestrator()


def create_app(
    orchestrator_factory: Callable[[], Orchestrator] = _default_orchestrator,
) -> FastAPI:
    """Create the FastAPI application exposing generation runs."""

    app = FastAPI(title="vaultsite", version="1.0.0")
    # At most one run at a time against any vault.
    run_lock = threading.Lock()

    async def get_orchestrator() -> Orchestrator:
        return orchestrator_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", running=run_lock.locked())

    @app.post("/generate", response_model=GenerateResponse)
    async def generate(
        payload: GenerateRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> GenerateResponse:
        if not run_lock.acquire(blocking=False):
            raise RunInProgressError("A generation run is already in progress")

        def _run() -> GenerationReport:
            return orchestrator.generate(
                payload.vault,
                output_dir=payload.output_dir,
                site_name=payload.site_name,
                allow_private_folders=payload.allow_private_folders,
                check_fonts=payload.check_fonts,
            )

        def _release_after(done: asyncio.Future[GenerationReport]) -> None:
            if not done.cancelled():
                done.exception()
            run_lock.release()

        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(None, _run)
        try:
            # A cancelled request leaves the run going; the lock follows the run.
            report = await asyncio.shield(future)
        finally:
            if future.done():
                run_lock.release()
            else:
                future.add_done_callback(_release_after)
        return GenerateResponse(
            status="ok" if report.succeeded else "partial",
            output_root=str(report.output_root),
            pages=len(report.pages),
            assets=len(report.assets),
            failures=[FailureModel(path=item.path, error=item.error) for item in report.failures],
        )

    @app.exception_handler(RunInProgressError)
    async def run_in_progress_handler(_: Any, exc: RunInProgressError) -> JSONResponse:
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.exception_handler(GenerationError)
    async def generation_error_handler(_: Any, exc: GenerationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(ConfigError)
    async def config_error_handler(
        _: Any, exc: ConfigError
    ) -> JSONResponse:  # pragma: no cover - simple mapping
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(host: str = "127.0.0.1", port: int = 8000) -> None:  # pragma: no cover - integration path
    import uvicorn

    app = create_app()
    uvicorn.run(app, host=host, port=port)
