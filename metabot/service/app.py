"""FastAPI application entrypoint for metabot service mode."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable, List, Optional

import uvicorn
from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..config import load_config
from ..discovery import read_document
from ..models import Document, DocumentReport, FieldValues
from ..patching.classifier import UnclassifiedDocumentError, classify
from ..patching.orchestrator import InvalidFieldValueError, PatchOrchestrator
from ..patching.patcher import FieldPatcher


class ClassifyRequest(BaseModel):
    path: str


class ClassifyResponse(BaseModel):
    path: str
    dialect: str
    is_template: bool


class PatchRequest(BaseModel):
    path: str
    content: Optional[str] = None
    keywords: Optional[List[str]] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    dry_run: bool = False


class FieldOutcomeModel(BaseModel):
    field: str
    status: str
    placement: Optional[str] = None
    detail: Optional[str] = None


class PatchResponse(BaseModel):
    path: str
    changed: bool
    written: bool
    content: str
    outcomes: List[FieldOutcomeModel]


class HealthResponse(BaseModel):
    status: str


def _default_patch_orchestrator() -> PatchOrchestrator:
    config = load_config(Path.cwd())
    return PatchOrchestrator(FieldPatcher(config.patch), config.patch)


def _to_response(report: DocumentReport) -> PatchResponse:
    return PatchResponse(
        path=report.document.path,
        changed=report.changed,
        written=report.written,
        content=report.content,
        outcomes=[
            FieldOutcomeModel(
                field=o.field.value,
                status=o.status.value,
                placement=o.placement,
                detail=o.detail,
            )
            for o in report.outcomes
        ],
    )


def create_app(
    orchestrator_factory: Callable[[], PatchOrchestrator] = _default_patch_orchestrator,
) -> FastAPI:
    """Create the FastAPI application exposing classification and patching."""
    app = FastAPI(title="Metabot Service", version="1.0.0")

    async def get_orchestrator() -> PatchOrchestrator:
        return orchestrator_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/classify", response_model=ClassifyResponse)
    async def classify_path(payload: ClassifyRequest) -> ClassifyResponse:
        result = classify(payload.path)
        return ClassifyResponse(
            path=payload.path,
            dialect=result.dialect.value,
            is_template=result.is_template,
        )

    @app.post("/patch", response_model=PatchResponse)
    async def patch_document(
        payload: PatchRequest,
        orchestrator: PatchOrchestrator = Depends(get_orchestrator),
    ) -> PatchResponse:
        values = FieldValues(
            keywords=payload.keywords,
            summary=payload.summary,
            description=payload.description,
        )

        def _run_patch() -> DocumentReport:
            if payload.content is not None:
                # Inline content is patched in memory and never written.
                result = classify(payload.path)
                document = Document(
                    path=payload.path,
                    dialect=result.dialect,
                    is_template=result.is_template,
                    content=payload.content,
                )
                return orchestrator.run([document], values, dry_run=True)[0]
            document = read_document(payload.path)
            return orchestrator.run([document], values, dry_run=payload.dry_run)[0]

        loop = asyncio.get_running_loop()
        report = await loop.run_in_executor(None, _run_patch)
        return _to_response(report)

    @app.exception_handler(UnclassifiedDocumentError)
    async def unclassified_handler(
        _: Any, exc: UnclassifiedDocumentError
    ) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(InvalidFieldValueError)
    async def invalid_value_handler(
        _: Any, exc: InvalidFieldValueError
    ) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(FileNotFoundError)
    async def file_not_found_handler(
        _: Any, exc: FileNotFoundError
    ) -> JSONResponse:  # pragma: no cover - simple mapping
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    return app


def run_service(
    host: str = "127.0.0.1", port: int = 8000
) -> None:  # pragma: no cover - integration path
    app = create_app()
    uvicorn.run(app, host=host, port=port)
