"""Dossier FastAPI application entry point."""

from __future__ import annotations

import asyncio
import logging
import re
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from pydantic import AliasChoices, BaseModel, Field

from dossier.config import settings
from dossier.db.database import Database
from dossier.errors import DossierError
from dossier.models.outcome import Outcome
from dossier.models.source import SourceMetadata
from dossier.provenance.evidence import EvidenceStore
from dossier.provenance.extracts import ExtractStore
from dossier.provenance.lifecycle import LifecycleManager
from dossier.provenance.linker import RoundSourceLinker
from dossier.provenance.registry import SourceRegistry
from dossier.provenance.research import ResearchLog
from dossier.report.aggregator import ReportAggregator
from dossier.report.renderer import DocumentRenderer
from dossier.report.typst_generator import TypstGenerator, TypstRenderer

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Every component, built around one injected datastore handle."""

    research: ResearchLog
    registry: SourceRegistry
    linker: RoundSourceLinker
    extracts: ExtractStore
    evidence: EvidenceStore
    lifecycle: LifecycleManager
    aggregator: ReportAggregator
    generator: TypstGenerator
    renderer: DocumentRenderer

    @classmethod
    def build(
        cls,
        db: Database,
        generator: TypstGenerator | None = None,
        renderer: DocumentRenderer | None = None,
    ) -> Services:
        linker = RoundSourceLinker(db)
        generator = generator or TypstGenerator()
        return cls(
            research=ResearchLog(db),
            registry=SourceRegistry(db, linker),
            linker=linker,
            extracts=ExtractStore(db),
            evidence=EvidenceStore(db),
            lifecycle=LifecycleManager(db),
            aggregator=ReportAggregator(db),
            generator=generator,
            renderer=renderer or TypstRenderer(generator),
        )


def get_services(request: Request) -> Services:
    return request.app.state.services


# --- Request / Response models ---


class ProjectCreate(BaseModel):
    title: str | None = None
    research_question: str | None = None
    hypothesis: str | None = None
    timespan_start: str | None = None
    timespan_end: str | None = None


class RoundCreate(BaseModel):
    label: str | None = None
    objective: str | None = None


class QueryCreate(BaseModel):
    query_text: str | None = None
    executed_at: str | None = None
    notes: str | None = None


class SourceAcquire(BaseModel):
    url: str | None = None
    source_type: str | None = None
    round_id: str | None = Field(
        default=None, validation_alias=AliasChoices("round_id", "roundId")
    )
    title: str | None = None
    author: str | None = None
    publisher: str | None = None
    published_at: str | None = None
    summary: str | None = None
    notes: str | None = None


class ExtractCreate(BaseModel):
    extract_type: str | None = None
    extract_text: str | None = None
    context_text: str | None = None
    location_ref: str | None = None


class EvidenceCreate(BaseModel):
    evidence_type: str | None = None
    evidence_text: str | None = None
    context_text: str | None = None
    location_ref: str | None = None
    why_relevant: str | None = None
    extract_id: str | None = None


class PromoteRequest(BaseModel):
    why_relevant: str | None = None
    evidence_type: str | None = None


class MutationResponse(BaseModel):
    id: str
    outcome: str
    message: str = ""


def _mutation(entity_id: str, outcome: Outcome, message: str) -> MutationResponse:
    return MutationResponse(id=entity_id, outcome=outcome.value, message=message)


# --- Routes ---

router = APIRouter()


@router.get("/health")
async def health():
    return {"status": "ok"}


# Projects


@router.post("/api/projects", status_code=201, response_model=MutationResponse)
async def create_project(req: ProjectCreate, services: Services = Depends(get_services)):
    project_id = await services.research.create_project(
        req.title, req.research_question, req.hypothesis, req.timespan_start, req.timespan_end
    )
    return _mutation(project_id, Outcome.CREATED, "Project created.")


@router.get("/api/projects")
async def list_projects(include_archived: bool = False, services: Services = Depends(get_services)):
    return await services.research.list_projects(include_archived=include_archived)


@router.get("/api/projects/{project_id}")
async def get_project(project_id: str, services: Services = Depends(get_services)):
    return await services.research.get_project(project_id)


@router.post("/api/projects/{project_id}/archive", response_model=MutationResponse)
async def archive_project(project_id: str, services: Services = Depends(get_services)):
    result = await services.lifecycle.archive_project(project_id)
    return _mutation(result.id, result.outcome, "Project archived.")


# Rounds and queries


@router.post("/api/projects/{project_id}/rounds", status_code=201, response_model=MutationResponse)
async def create_round(
    project_id: str, req: RoundCreate, services: Services = Depends(get_services)
):
    round_id = await services.research.create_round(project_id, req.label, req.objective)
    return _mutation(round_id, Outcome.CREATED, "Search round created.")


@router.get("/api/projects/{project_id}/rounds")
async def list_rounds(project_id: str, services: Services = Depends(get_services)):
    return await services.research.list_rounds(project_id)


@router.delete("/api/rounds/{round_id}", response_model=MutationResponse)
async def delete_round(round_id: str, services: Services = Depends(get_services)):
    result = await services.lifecycle.delete_round(round_id)
    return _mutation(result.id, result.outcome, "Round, its queries and its links deleted.")


@router.post("/api/rounds/{round_id}/queries", status_code=201, response_model=MutationResponse)
async def log_query(round_id: str, req: QueryCreate, services: Services = Depends(get_services)):
    query_id = await services.research.log_query(
        round_id, req.query_text, req.executed_at, req.notes
    )
    return _mutation(query_id, Outcome.CREATED, "Search query logged.")


@router.get("/api/rounds/{round_id}/queries")
async def list_queries(round_id: str, services: Services = Depends(get_services)):
    return await services.research.list_queries(round_id)


# Sources


@router.post("/api/projects/{project_id}/sources", status_code=201, response_model=MutationResponse)
async def acquire_source(
    project_id: str, req: SourceAcquire, services: Services = Depends(get_services)
):
    metadata = SourceMetadata(
        title=req.title,
        author=req.author,
        publisher=req.publisher,
        published_at=req.published_at,
        summary=req.summary,
        notes=req.notes,
    )
    result = await services.registry.acquire(
        project_id, req.url, req.source_type, req.round_id, metadata
    )
    message = "Source created and linked." if result.created else "Source linked to round."
    return _mutation(result.source_id, result.outcome, message)


@router.get("/api/projects/{project_id}/sources")
async def list_sources(
    project_id: str, include_archived: bool = False, services: Services = Depends(get_services)
):
    return await services.registry.list_for_project(project_id, include_archived=include_archived)


@router.get("/api/sources/{source_id}")
async def get_source(source_id: str, services: Services = Depends(get_services)):
    return await services.registry.get(source_id)


@router.post("/api/sources/{source_id}/archive", response_model=MutationResponse)
async def archive_source(source_id: str, services: Services = Depends(get_services)):
    result = await services.lifecycle.archive_source(source_id)
    return _mutation(result.id, result.outcome, "Source archived.")


# Round / source links


@router.post("/api/rounds/{round_id}/sources/{source_id}/link", response_model=MutationResponse)
async def link_source(round_id: str, source_id: str, services: Services = Depends(get_services)):
    outcome = await services.linker.link(round_id, source_id)
    return _mutation(source_id, outcome, "Link created.")


@router.delete("/api/rounds/{round_id}/sources/{source_id}/link", response_model=MutationResponse)
async def unlink_source(round_id: str, source_id: str, services: Services = Depends(get_services)):
    outcome = await services.linker.unlink(round_id, source_id)
    message = "Link removed." if outcome is Outcome.UNLINKED else "No such link."
    return _mutation(source_id, outcome, message)


@router.get("/api/rounds/{round_id}/sources")
async def list_round_sources(round_id: str, services: Services = Depends(get_services)):
    return await services.linker.list_sources(round_id)


# Extracts


@router.post("/api/sources/{source_id}/extracts", status_code=201, response_model=MutationResponse)
async def capture_extract(
    source_id: str, req: ExtractCreate, services: Services = Depends(get_services)
):
    extract_id = await services.extracts.capture(
        source_id, req.extract_type, req.extract_text, req.context_text, req.location_ref
    )
    return _mutation(extract_id, Outcome.CREATED, "Extract captured.")


@router.get("/api/sources/{source_id}/extracts")
async def list_extracts(source_id: str, services: Services = Depends(get_services)):
    return await services.extracts.list_for_source(source_id)


@router.delete("/api/extracts/{extract_id}", response_model=MutationResponse)
async def delete_extract(extract_id: str, services: Services = Depends(get_services)):
    result = await services.lifecycle.delete_extract(extract_id)
    return _mutation(result.id, result.outcome, "Extract deleted.")


@router.post("/api/extracts/{extract_id}/promote", status_code=201, response_model=MutationResponse)
async def promote_extract(
    extract_id: str, req: PromoteRequest, services: Services = Depends(get_services)
):
    evidence_id = await services.evidence.promote(extract_id, req.why_relevant, req.evidence_type)
    return _mutation(evidence_id, Outcome.CREATED, "Extract promoted to evidence.")


# Evidence


@router.post("/api/sources/{source_id}/evidence", status_code=201, response_model=MutationResponse)
async def record_evidence(
    source_id: str, req: EvidenceCreate, services: Services = Depends(get_services)
):
    evidence_id = await services.evidence.record(
        source_id,
        req.evidence_type,
        req.evidence_text,
        req.context_text,
        req.location_ref,
        req.why_relevant,
        extract_id=req.extract_id,
    )
    return _mutation(evidence_id, Outcome.CREATED, "Evidence recorded.")


@router.get("/api/sources/{source_id}/evidence")
async def list_evidence(source_id: str, services: Services = Depends(get_services)):
    return await services.evidence.list_for_source(source_id)


@router.get("/api/projects/{project_id}/evidence")
async def list_project_evidence(project_id: str, services: Services = Depends(get_services)):
    return await services.evidence.list_for_project(project_id)


@router.get("/api/evidence/{evidence_id}")
async def get_evidence(evidence_id: str, services: Services = Depends(get_services)):
    return await services.evidence.get(evidence_id)


@router.delete("/api/evidence/{evidence_id}", response_model=MutationResponse)
async def delete_evidence(evidence_id: str, services: Services = Depends(get_services)):
    result = await services.lifecycle.delete_evidence(evidence_id)
    return _mutation(result.id, result.outcome, "Evidence deleted.")


# Report


@router.get("/api/projects/{project_id}/report")
async def get_report(project_id: str, services: Services = Depends(get_services)):
    """The assembled report tree as JSON."""
    document = await services.aggregator.assemble(project_id)
    return document.to_dict()


@router.get("/api/projects/{project_id}/report.typ", response_class=PlainTextResponse)
async def get_report_source(project_id: str, services: Services = Depends(get_services)):
    document = await services.aggregator.assemble(project_id)
    return services.generator.generate(document)


@router.get("/api/projects/{project_id}/report.pdf")
async def get_report_pdf(project_id: str, services: Services = Depends(get_services)):
    """Render the report and wait for the artifact before responding."""
    document = await services.aggregator.assemble(project_id)
    artifact = await asyncio.to_thread(services.renderer.render, document)
    filename = re.sub(r"[^a-z0-9]", "_", document.project.title, flags=re.IGNORECASE)
    return Response(
        content=artifact,
        media_type=services.renderer.media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}_report.pdf"'},
    )


# --- Application ---


async def dossier_error_handler(request: Request, exc: DossierError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.kind, "detail": exc.detail, "retryable": exc.retryable},
    )


def create_app(
    database: Database | None = None, renderer: DocumentRenderer | None = None
) -> FastAPI:
    """Build the application around an injected datastore handle."""
    logging.basicConfig(level=settings.log_level)

    db = database or Database(settings.database_path)
    template = Path(settings.report_template).read_text() if settings.report_template else None
    services = Services.build(db, TypstGenerator(template), renderer)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_connection = not db.is_connected
        if owns_connection:
            await db.connect()
        yield
        if owns_connection:
            await db.close()

    app = FastAPI(
        title="Dossier",
        description="Research provenance tracker",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(DossierError, dossier_error_handler)
    app.include_router(router)
    return app


app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port)
