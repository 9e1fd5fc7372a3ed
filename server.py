"""
Labwise Web Server

FastAPI-based web server for the Labwise diagnostic test advisor.
"""

import json
import sys
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Optional
from uuid import uuid4

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, Field

# Setup paths
project_root = Path(__file__).parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from labwise import __version__
from labwise.config import Settings
from labwise.engines import DiagnosticAdvisor
from labwise.exporters import export_json, export_json_summary, export_markdown
from labwise.intake import build_vocabulary, parse_presentation
from labwise.models import DiagnosticTest, FilterParams, PatientProfile, RecommendationSet
from labwise.utils import LabwiseError, UnknownTestError, get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging and load the knowledge base before serving."""
    settings = Settings.from_env()
    setup_logging(settings.log_level, settings.log_file, settings.log_levels)
    advisor = DiagnosticAdvisor.from_settings(settings)
    logger.info("Labwise API ready with %d tests", len(advisor.catalog))
    yield
    sessions_store.clear()
    session_patients.clear()


# Create FastAPI app
app = FastAPI(
    title="Labwise",
    description="Labwise - Diagnostic Test Advisor API",
    version=__version__,
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# In-memory storage for advisor sessions
sessions_store: dict[str, DiagnosticAdvisor] = {}
session_patients: dict[str, PatientProfile] = {}


# Request/Response models
class RecommendRequest(BaseModel):
    """Request model for a recommendation pass."""
    age: int = Field(..., description="Patient age in years")
    gender: Optional[str] = Field(None, description="Patient gender (male/female/other)")
    symptoms: list[str] = Field(default_factory=list, description="Presenting symptoms")
    diagnosis: str = Field("", description="Stated or suspected diagnosis")
    medical_history: list[str] = Field(default_factory=list)
    current_medications: list[str] = Field(default_factory=list)
    allergies: list[str] = Field(default_factory=list)

    def to_patient(self) -> PatientProfile:
        return PatientProfile(
            age=self.age,
            gender=self.gender,
            symptoms=self.symptoms,
            medical_history=self.medical_history,
            current_medications=self.current_medications,
            allergies=self.allergies,
        )


class IntakeRequest(BaseModel):
    """Request model for free-text intake."""
    description: str = Field(..., description="Natural language description of the patient")
    use_llm: bool = Field(True, description="Use the LLM when an API key is configured")


class CatalogEntry(BaseModel):
    """Summary row for one catalog test."""
    id: str
    name: str
    localized_name: str
    category: str
    type: str
    priority: str
    cost: float
    accuracy: float
    availability: str
    fasting: bool


class SessionInfo(BaseModel):
    """A newly created advisor session."""
    session_id: str
    created_at: str


# Exception handlers
@app.exception_handler(UnknownTestError)
async def unknown_test_handler(request: Request, exc: UnknownTestError):
    return JSONResponse(status_code=404, content=exc.to_dict())


@app.exception_handler(LabwiseError)
async def labwise_error_handler(request: Request, exc: LabwiseError):
    return JSONResponse(status_code=400, content=exc.to_dict())


def _summarize(test: DiagnosticTest) -> CatalogEntry:
    return CatalogEntry(
        id=test.id,
        name=test.name,
        localized_name=test.localized_name,
        category=test.category.value,
        type=test.type.value,
        priority=test.priority.value,
        cost=test.cost,
        accuracy=test.accuracy,
        availability=test.availability.value,
        fasting=test.fasting,
    )


def _default_advisor() -> DiagnosticAdvisor:
    # Catalog and rules are cached per path, so this is cheap per request
    return DiagnosticAdvisor.from_settings()


def _get_session(session_id: str) -> DiagnosticAdvisor:
    if session_id not in sessions_store:
        raise HTTPException(status_code=404, detail="Session not found")
    return sessions_store[session_id]


def _require_pass(advisor: DiagnosticAdvisor) -> RecommendationSet:
    result = advisor.current
    if result is None:
        raise HTTPException(status_code=400, detail="No recommendations computed for this session")
    return result


# Routes
@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__, "timestamp": datetime.now().isoformat()}


@app.get("/api/tests", response_model=list[CatalogEntry])
async def list_tests(
    search: str = Query("", description="Search name, localized name and description"),
    category: str = Query("all"),
    type: str = Query("all"),
    sort: str = Query("relevance"),
    cost_min: float = Query(0),
    cost_max: float = Query(10000),
):
    """
    Browse the full catalog.

    Unknown category, type or sort values are treated as "all" and relevance.
    """
    params = FilterParams(
        search_text=search,
        category=category,
        type=type,
        sort_key=sort,
        cost_min=cost_min,
        cost_max=cost_max,
        only_recommended=False,
    )
    advisor = _default_advisor()
    return [_summarize(t) for t in advisor.view_tests(params)]


@app.get("/api/tests/{test_id}")
async def get_test(test_id: str):
    """Get the full record of one test."""
    advisor = _default_advisor()
    return advisor.get_test(test_id).model_dump(mode="json")


@app.post("/api/recommendations")
async def recommend(request: RecommendRequest):
    """Run a one-off recommendation pass without creating a session."""
    advisor = _default_advisor()
    result = advisor.recommend(request.to_patient(), diagnosis=request.diagnosis)
    return result.model_dump(mode="json")


@app.post("/api/sessions", response_model=SessionInfo, status_code=201)
async def create_session():
    """Create an advisor session holding its own pass and selection."""
    session_id = str(uuid4())
    sessions_store[session_id] = _default_advisor()
    logger.debug("Created session %s", session_id)
    return SessionInfo(session_id=session_id, created_at=datetime.now().isoformat())


@app.delete("/api/sessions/{session_id}")
async def delete_session(session_id: str):
    """Delete a session from memory."""
    _get_session(session_id)
    del sessions_store[session_id]
    session_patients.pop(session_id, None)
    return {"status": "deleted", "session_id": session_id}


@app.post("/api/sessions/{session_id}/recommendations")
async def session_recommend(session_id: str, request: RecommendRequest):
    """Run a pass in a session, replacing its current recommendations."""
    advisor = _get_session(session_id)
    patient = request.to_patient()
    result = advisor.recommend(patient, diagnosis=request.diagnosis)
    session_patients[session_id] = patient
    return result.model_dump(mode="json")


@app.get("/api/sessions/{session_id}/recommendations")
async def session_recommendations(session_id: str):
    """Get the session's current recommendation pass."""
    advisor = _get_session(session_id)
    return _require_pass(advisor).model_dump(mode="json")


@app.post("/api/sessions/{session_id}/tests/view", response_model=list[CatalogEntry])
async def session_view_tests(session_id: str, params: FilterParams):
    """
    Filter and sort the catalog for a session.

    With only_recommended (the default) the working set is the session's
    current recommendations, empty until a pass has run.
    """
    advisor = _get_session(session_id)
    return [_summarize(t) for t in advisor.view_tests(params)]


@app.post("/api/sessions/{session_id}/selection/{test_id}")
async def select_test(session_id: str, test_id: str):
    """Add a test to the session's order. Selecting twice is a no-op."""
    advisor = _get_session(session_id)
    added = advisor.select_test(test_id)
    return {
        "test_id": test_id,
        "selected": True,
        "newly_selected": added,
        "count": len(advisor.selection),
    }


@app.get("/api/sessions/{session_id}/selection")
async def get_selection(session_id: str):
    """Get the order summary for the session's selected tests."""
    advisor = _get_session(session_id)
    return advisor.order_summary().model_dump(mode="json")


@app.get("/api/sessions/{session_id}/report")
async def session_report(session_id: str, format: str = Query("json")):
    """
    Export the session's current pass and order.

    Formats: json, summary, markdown
    """
    advisor = _get_session(session_id)
    result = _require_pass(advisor)
    order = advisor.order_summary()

    if format == "json":
        return JSONResponse(content=json.loads(export_json(result, order=order)))
    elif format == "summary":
        return export_json_summary(result)
    elif format == "markdown":
        markdown = export_markdown(result, patient=session_patients.get(session_id), order=order)
        return PlainTextResponse(content=markdown, media_type="text/markdown")
    else:
        raise HTTPException(status_code=400, detail="Invalid format. Use: json, summary or markdown")


@app.post("/api/intake/parse")
async def parse_intake(request: IntakeRequest):
    """
    Parse a free-text presentation into age, gender, symptoms and diagnosis.
    """
    settings = Settings.from_env()
    advisor = _default_advisor()
    vocabulary = build_vocabulary(advisor.catalog, advisor.engine.rules)
    parsed = parse_presentation(
        request.description,
        vocabulary=vocabulary,
        use_llm=request.use_llm and settings.llm_enabled,
    )
    return parsed.model_dump(mode="json")


def run_server(host: str = "0.0.0.0", port: int = 8000):
    """Run the server."""
    import uvicorn
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
