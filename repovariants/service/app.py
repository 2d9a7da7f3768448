"""FastAPI application entrypoint for repovariants service mode."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..config import CompareOptions
from ..errors import ConfigurationError, NotFoundError
from ..models import RankedResult
from ..orchestrator import Orchestrator
from ..render.structured import candidate_to_dict, diff_report_to_dict, forensic_to_dict


class CompareRequest(BaseModel):
    root_path: str
    name_prefix: str
    diff_level: str = "none"
    diff_patterns: List[str] = Field(default_factory=list)
    checksum: bool = False
    dirty_detail: bool = False
    compute_best: bool = True
    sort: str = "best"
    grouped_summary: bool = False
    forensic: bool = False
    max_depth: int = 8
    workers: int = 4
    timeout: Optional[float] = 120.0
    output_dir: Optional[str] = None
    top: Optional[int] = None


class CompareResponse(BaseModel):
    root_path: str
    name_prefix: str
    run_stamp: str
    best: Optional[str] = None
    candidates: List[Dict[str, Any]] = Field(default_factory=list)
    diffs: List[Dict[str, Any]] = Field(default_factory=list)
    forensic: Optional[Dict[str, Any]] = None
    artifacts: List[str] = Field(default_factory=list)


class HealthResponse(BaseModel):
    status: str


def _default_orchestrator() -> Orchestrator:
    return Orchestrator()


def _to_options(payload: CompareRequest) -> CompareOptions:
    options = CompareOptions(
        diff_level=payload.diff_level,
        diff_patterns=list(payload.diff_patterns),
        checksum=payload.checksum,
        dirty_detail=payload.dirty_detail,
        output_format="json",
        compute_best=payload.compute_best,
        sort=payload.sort,
        grouped_summary=payload.grouped_summary,
        forensic=payload.forensic,
        max_depth=payload.max_depth,
        workers=payload.workers,
        timeout=payload.timeout,
        top=payload.top,
    )
    if payload.output_dir:
        options.output_dir = Path(payload.output_dir)
    return options


def _to_response(result: RankedResult, *, dirty_detail: bool) -> CompareResponse:
    return CompareResponse(
        root_path=result.root_path,
        name_prefix=result.name_prefix,
        run_stamp=result.run_stamp,
        best=result.best_path,
        candidates=[
            candidate_to_dict(candidate, is_best=candidate is result.best, dirty_detail=dirty_detail)
            for candidate in result.candidates
        ],
        diffs=[diff_report_to_dict(report) for report in result.diff_reports],
        forensic=forensic_to_dict(result.forensic),
        artifacts=[str(path) for path in result.artifacts],
    )


def create_app(
    orchestrator_factory: Callable[[], Orchestrator] = _default_orchestrator,
) -> FastAPI:
    """Create the FastAPI application exposing variant comparison."""

    app = FastAPI(title="Repository Variants Service", version="1.0.0")

    async def get_orchestrator() -> Orchestrator:
        return orchestrator_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/compare", response_model=CompareResponse)
    async def compare(
        payload: CompareRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> CompareResponse:
        options = _to_options(payload)

        def _run_compare() -> RankedResult:
            return orchestrator.compare(payload.root_path, payload.name_prefix, options)

        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(None, _run_compare)
        return _to_response(result, dirty_detail=payload.dirty_detail)

    @app.exception_handler(NotFoundError)
    async def not_found_handler(_: Any, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(_: Any, exc: ConfigurationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(host: str = "127.0.0.1", port: int = 8000) -> None:  # pragma: no cover - integration path
    import uvicorn

    app = create_app()
    uvicorn.run(app, host=host, port=port)


__all__ = ["CompareRequest", "CompareResponse", "create_app", "run_service"]
