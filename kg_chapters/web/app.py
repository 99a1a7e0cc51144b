from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from starlette.concurrency import run_in_threadpool

from kg_chapters.analysis.engine import AnalysisEngine
from kg_chapters.config.settings import settings
from kg_chapters.documents import ChapterDocument
from kg_chapters.models.concept import ConceptGraph
from kg_chapters.models.library import ConceptLibrary
from kg_chapters.models.report import AnalysisReport
from kg_chapters.models.section import Section
from kg_chapters.nlp.concept_extraction import ConceptExtractor, ExtractionMode
from kg_chapters.web.security import api_key_auth

logger = logging.getLogger("kg_chapters.web")
logging.basicConfig(level=logging.INFO)


# -------------------------------------------------------------------
# Lifespan: build the analysis engine once at startup
# -------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup/shutdown handler.

    The engine starts without evaluators; deployments register theirs on
    `app.state.engine` before serving traffic.
    """
    if getattr(app.state, "engine", None) is None:
        app.state.engine = AnalysisEngine(config=settings)
    logger.info("Analysis engine ready with %d evaluators", len(app.state.engine.evaluators))

    yield


app = FastAPI(
    title="Chapter Concept Graph API",
    description="Extract concept graphs from chapters and aggregate learning-principle scores.",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -------------------------------------------------------------------
# Middleware
# -------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Log method, path, and response status.
    """
    logger.info(f"Incoming request: {request.method} {request.url.path}")
    start = time.time()

    response = await call_next(request)

    duration_ms = (time.time() - start) * 1000
    logger.info(
        f"Completed {request.method} {request.url.path} "
        f"with status {response.status_code} in {duration_ms:.2f}ms"
    )

    return response


# -------------------------------------------------------------------
# Models
# -------------------------------------------------------------------


class SectionPayload(BaseModel):
    heading: str
    content: str = ""
    start_position: int = 0
    end_position: int = 0
    id: Optional[str] = None
    level: int = 1

    def to_section(self) -> Section:
        return Section(**self.model_dump())


class ExtractRequest(BaseModel):
    text: str
    sections: List[SectionPayload] = Field(default_factory=list)
    library: Optional[ConceptLibrary] = None
    domain: Optional[str] = None
    mode: ExtractionMode = ExtractionMode.AUTO


class AnalyzeRequest(BaseModel):
    chapter_id: str
    text: str
    title: Optional[str] = None
    sections: List[SectionPayload] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)


# -------------------------------------------------------------------
# Helpers
# -------------------------------------------------------------------


def _get_engine(app_obj: FastAPI) -> AnalysisEngine:
    """
    Fetch the analysis engine from app.state, initializing if needed.
    """
    engine = getattr(app_obj.state, "engine", None)
    if engine is None:
        engine = AnalysisEngine(config=settings)
        app_obj.state.engine = engine
    return engine


# -------------------------------------------------------------------
# Routes
# -------------------------------------------------------------------


@app.get("/health", summary="Health check")
async def health() -> dict:
    """
    Simple health check endpoint.
    """
    return {"status": "ok"}


@app.post(
    "/extract",
    response_model=ConceptGraph,
    summary="Extract a concept graph from chapter text",
    dependencies=[Depends(api_key_auth)],
)
async def extract(payload: ExtractRequest) -> ConceptGraph:
    """
    Run concept extraction in a worker thread; the event loop stays free
    while the regex-heavy pipeline runs.
    """
    extractor = ConceptExtractor(
        library=payload.library,
        domain=payload.domain,
        mode=payload.mode,
        config=settings,
    )
    sections = [s.to_section() for s in payload.sections]
    return await run_in_threadpool(extractor.extract, payload.text, sections)


@app.post(
    "/analyze",
    response_model=AnalysisReport,
    summary="Analyze a chapter with the registered principle evaluators",
    dependencies=[Depends(api_key_auth)],
)
async def analyze(payload: AnalyzeRequest, request: Request) -> AnalysisReport:
    engine = _get_engine(request.app)
    document = ChapterDocument(
        chapter_id=payload.chapter_id,
        text=payload.text,
        title=payload.title,
        sections=[s.to_section() for s in payload.sections],
        metadata=dict(payload.metadata),
    )
    return await run_in_threadpool(engine.analyze, document)
