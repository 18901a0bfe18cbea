"""FastAPI application entrypoint for agentlint service mode."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .. import __version__
from ..baseline import BaselineError
from ..config import ConfigError
from ..crossfile import ChainLink, format_chain, format_cycle
from ..models import ComponentType
from ..orchestrator import LintOutcome, Orchestrator
from ..output import summarize


class LintRequest(BaseModel):
    path: str
    fail_on: Optional[str] = None
    cycle_check: bool = True


class DiagnosticModel(BaseModel):
    file: str
    message: str
    severity: str
    source: str


class LintResponse(BaseModel):
    exit_code: int
    suppressed: int
    summary: Dict[str, int]
    diagnostics: List[DiagnosticModel]
    cycles: List[str]


class ExplainRequest(BaseModel):
    path: str
    type: ComponentType
    name: str


class ExplainResponse(BaseModel):
    chain: Dict[str, Any]
    rendered: str


class HealthResponse(BaseModel):
    status: str


def _default_orchestrator() -> Orchestrator:
    return Orchestrator()


def create_app(
    orchestrator_factory: Callable[[], Orchestrator] = _default_orchestrator,
) -> FastAPI:
    """Create the FastAPI application exposing lint operations."""

    app = FastAPI(title="agentlint Service", version=__version__)

    async def get_orchestrator() -> Orchestrator:
        return orchestrator_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/lint", response_model=LintResponse)
    async def lint(
        payload: LintRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> LintResponse:
        def _run_lint() -> LintOutcome:
            return orchestrator.run_lint(
                payload.path, fail_on=payload.fail_on, cycle_check=payload.cycle_check
            )

        loop = asyncio.get_running_loop()
        outcome = await loop.run_in_executor(None, _run_lint)
        return LintResponse(
            exit_code=outcome.exit_code,
            suppressed=outcome.suppressed,
            summary=summarize(outcome.diagnostics),
            diagnostics=[DiagnosticModel(**item.to_dict()) for item in outcome.diagnostics],
            cycles=[format_cycle(cycle) for cycle in outcome.cycles],
        )

    @app.post("/explain", response_model=ExplainResponse)
    async def explain(
        payload: ExplainRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> ExplainResponse:
        def _run_explain() -> ChainLink | None:
            return orchestrator.run_explain(payload.path, payload.type, payload.name)

        loop = asyncio.get_running_loop()
        chain = await loop.run_in_executor(None, _run_explain)
        if chain is None:
            raise HTTPException(
                status_code=404,
                detail=f"No {payload.type.value} named '{payload.name}' in corpus",
            )
        return ExplainResponse(chain=chain.to_dict(), rendered=format_chain(chain))

    @app.exception_handler(FileNotFoundError)
    async def file_not_found_handler(_: Any, exc: FileNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(NotADirectoryError)
    async def not_a_directory_handler(_: Any, exc: NotADirectoryError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(ConfigError)
    async def config_error_handler(_: Any, exc: ConfigError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(BaselineError)
    async def baseline_error_handler(_: Any, exc: BaselineError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(host: str = "127.0.0.1", port: int = 8000) -> None:  # pragma: no cover - integration path
    import uvicorn

    uvicorn.run(create_app(), host=host, port=port)


__all__ = ["create_app", "run_service"]
