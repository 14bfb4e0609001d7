"""FastAPI application entrypoint for inspecta service mode."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable, Dict, List, Literal, Optional

import uvicorn
from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel

from ..cleanup import CleanupOutcome
from ..models import InspectionReport
from ..orchestrator import Orchestrator
from ..report import report_to_dict


class InspectRequest(BaseModel):
    path: str
    format: Literal["json", "text"] = "json"


class CleanupRequest(BaseModel):
    path: str
    type: str
    confirm: bool = False


class CleanupFailure(BaseModel):
    path: str
    reason: str


class CleanupResponse(BaseModel):
    status: str
    dry_run: bool
    error: Optional[str] = None
    candidates: List[str] = []
    reclaimable_bytes: int = 0
    deleted: int = 0
    failed: List[CleanupFailure] = []


class HealthResponse(BaseModel):
    status: str


def _default_orchestrator() -> Orchestrator:
    return Orchestrator()


def _relative(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()


def _cleanup_response(outcome: CleanupOutcome) -> CleanupResponse:
    if outcome.error:
        return CleanupResponse(status="error", dry_run=outcome.dry_run, error=outcome.error)
    plan = outcome.plan
    candidates: List[str] = []
    reclaimable = 0
    if plan is not None:
        candidates = sorted(_relative(item.path, plan.root) for item in plan.candidates)
        reclaimable = plan.total_size
    return CleanupResponse(
        status="ok",
        dry_run=outcome.dry_run,
        candidates=candidates,
        reclaimable_bytes=reclaimable,
        deleted=len(outcome.deleted),
        failed=[
            CleanupFailure(path=_relative(path, plan.root) if plan else str(path), reason=reason)
            for path, reason in outcome.failed
        ],
    )


def create_app(
    orchestrator_factory: Callable[[], Orchestrator] = _default_orchestrator,
) -> FastAPI:
    """Create the FastAPI application exposing inspecta operations."""

    app = FastAPI(title="Inspecta Service", version="1.0.0")

    async def get_orchestrator() -> Orchestrator:
        # A fresh orchestrator per request keeps runs independent.
        return orchestrator_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/inspect", response_model=None)
    async def inspect_project(
        payload: InspectRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> Dict[str, Any] | PlainTextResponse:
        def _run_inspect() -> InspectionReport:
            return orchestrator.run_inspect(payload.path)

        loop = asyncio.get_running_loop()
        report = await loop.run_in_executor(None, _run_inspect)
        if payload.format == "text":
            return PlainTextResponse(orchestrator.render(report, fmt="text"))
        return report_to_dict(report)

    @app.post("/cleanup", response_model=CleanupResponse)
    async def cleanup_project(
        payload: CleanupRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> CleanupResponse:
        def _run_cleanup() -> CleanupOutcome:
            return orchestrator.run_cleanup(payload.path, payload.type, confirm=payload.confirm)

        loop = asyncio.get_running_loop()
        outcome = await loop.run_in_executor(None, _run_cleanup)
        return _cleanup_response(outcome)

    @app.exception_handler(FileNotFoundError)
    async def file_not_found_handler(
        _: Any, exc: FileNotFoundError
    ) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(NotADirectoryError)
    async def not_a_directory_handler(
        _: Any, exc: NotADirectoryError
    ) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(
    host: str = "127.0.0.1", port: int = 8000
) -> None:  # pragma: no cover - integration path
    uvicorn.run(create_app(), host=host, port=port)
