"""FastAPI app for consultant registration, assignments and matching.

Errors raised by the pipelines are mapped to ``{"error", "detail"}`` JSON
bodies by the exception handlers below.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from io import BytesIO
from typing import Any

from fastapi import Depends, FastAPI, File, Form, HTTPException, Query, UploadFile, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from ai.functions import FunctionInvocationError, FunctionsClient, get_functions_client
from ai.skill_taxonomy import TAXONOMY_VERSION
from .config import ScoringVariant, settings
from .db import get_session
from .logging_config import setup_logging
from .parsers import ParseError, validate_cv_upload
from .pipelines.assignment_processing import (
    AssignmentNotFoundError,
    AssignmentProcessingError,
    create_assignment,
    get_assignment,
    list_assignments,
)
from .pipelines.consultant_processing import (
    ConsultantNotFoundError,
    ConsultantProcessingError,
    create_consultant,
    get_consultant,
    list_consultants,
    register_consultant_from_cv,
)
from .pipelines.ingest import IngestError, import_consultants_from_file
from .pipelines.matching import (
    MatchingError,
    get_stored_matches,
    match_assignment_to_consultants,
    preview_match,
)
from .pipelines.notifications import create_skill_alert
from .schemas import AssignmentCreate, ConsultantCreate, PersonalInfo, SkillAlertCreate

logger = logging.getLogger(__name__)

CHAT_FALLBACK = "Sorry, I cannot respond right now. Please try again in a moment."


# Pydantic response models
class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str


class ErrorResponse(BaseModel):
    """Error response."""
    error: str
    detail: str | None = None


class ConsultantDTO(BaseModel):
    """Consultant data transfer object."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    phone: str | None = None
    location: str | None = None
    title: str | None = None
    tagline: str | None = None
    skills: list[str] = Field(default_factory=list)
    roles: list[str] = Field(default_factory=list)
    values: list[str] = Field(default_factory=list)
    experience: str | None = None
    experience_years: int | None = None
    rate: str | None = None
    hourly_rate: int | None = None
    availability: str | None = None
    rating: float | None = None
    communication_style: str | None = None
    cultural_fit: int | None = None
    adaptability: int | None = None
    leadership: int | None = None
    linkedin_url: str | None = None
    type: str
    is_published: bool
    created_at: datetime


class UploadCVResponse(BaseModel):
    """CV upload response."""
    status: str
    consultant: ConsultantDTO
    skills_source: str
    linkedin_analyzed: bool
    welcome_email_sent: bool
    admin_notified: bool
    skill_alerts_sent: int
    warnings: list[str] = Field(default_factory=list)
    message: str


class SkippedRowDTO(BaseModel):
    row: int
    reason: str


class BulkImportResponse(BaseModel):
    """Bulk import response."""
    status: str
    total_rows: int
    created: int
    consultant_ids: list[int]
    skipped: list[SkippedRowDTO]
    message: str


class AssignmentDTO(BaseModel):
    """Assignment data transfer object."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    company: str
    required_skills: list[str] = Field(default_factory=list)
    budget: str | None = None
    duration: str | None = None
    workload: str | None = None
    location: str | None = None
    remote_type: str | None = None
    urgency: str
    status: str
    industry: str | None = None
    team_size: str | None = None
    start_date: str | None = None
    desired_communication_style: str | None = None
    team_culture: str | None = None
    team_dynamics: str | None = None
    required_values: list[str] = Field(default_factory=list)
    leadership_level: int | None = None
    created_at: datetime


class MatchRequest(BaseModel):
    """Match assignment to consultants request."""
    top_n: int | None = Field(default=None, ge=1, le=500)
    variant: ScoringVariant | None = None


class MatchResultDTO(BaseModel):
    """Single match result."""
    model_config = ConfigDict(from_attributes=True)

    match_id: int | None = None
    consultant_id: int
    consultant_name: str
    rank: int
    match_score: int
    human_factors_score: int
    matched_skills: list[str]
    matched_values: list[str]
    score_breakdown: dict[str, Any]
    reasoning: str
    cover_letter: str
    response_time_hours: int
    estimated_savings: int


class MatchResponse(BaseModel):
    """Match response."""
    status: str
    assignment_id: int
    variant: str
    candidates_scored: int
    top_n: int
    matches: list[MatchResultDTO]
    computed_at: str
    message: str


class StoredMatchDTO(BaseModel):
    """Persisted match."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    consultant_id: int
    rank: int
    match_score: int
    variant: str
    human_factors_score: int | None = None
    matched_skills: list[str]
    matched_values: list[str]
    score_breakdown: dict[str, Any]
    reasoning: str | None = None
    cover_letter: str | None = None
    response_time_hours: int | None = None
    estimated_savings: int | None = None
    status: str
    is_stale: bool
    created_at: datetime


class StoredMatchesResponse(BaseModel):
    """Stored matches for an assignment."""
    assignment_id: int
    matches: list[StoredMatchDTO]
    detail: str | None = None


class SkillAlertDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    skills: list[str]
    active: bool
    created_at: datetime


class ChatRequest(BaseModel):
    """Assistant chat request."""
    message: str = Field(min_length=1)
    context: dict[str, Any] | None = None
    role: str | None = None


class ChatResponse(BaseModel):
    response: str
    fallback: bool = False


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown logic."""
    # Startup
    setup_logging()
    logger.info(f"{settings.app_name} {settings.version} starting up ({settings.environment.value})")

    yield

    # Shutdown
    logger.info("Application shutting down")


app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    description="Consultant registration from CVs and heuristic assignment matching",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:5173"],  # Frontend URLs
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(status_code: int, error: str, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, detail=str(exc)).model_dump(),
    )


# Exception handlers
@app.exception_handler(ParseError)
async def parse_error_handler(request, exc: ParseError):
    """Handle document parsing and upload validation errors."""
    logger.error(f"Parse error: {exc}")
    return _error(status.HTTP_400_BAD_REQUEST, "parse_error", exc)


@app.exception_handler(IngestError)
async def ingest_error_handler(request, exc: IngestError):
    logger.error(f"Ingest error: {exc}")
    return _error(status.HTTP_400_BAD_REQUEST, "ingest_error", exc)


@app.exception_handler(ConsultantNotFoundError)
@app.exception_handler(AssignmentNotFoundError)
async def not_found_handler(request, exc: Exception):
    logger.info(f"Not found: {exc}")
    return _error(status.HTTP_404_NOT_FOUND, "not_found", exc)


@app.exception_handler(FunctionInvocationError)
async def function_error_handler(request, exc: FunctionInvocationError):
    """Handle failures of the hosted functions."""
    logger.error(f"Function error: {exc}")
    return _error(status.HTTP_502_BAD_GATEWAY, "function_error", exc)


@app.exception_handler(ConsultantProcessingError)
async def processing_error_handler(request, exc: ConsultantProcessingError):
    """Handle consultant processing errors."""
    logger.error(f"Processing error: {exc}")
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "processing_error", exc)


@app.exception_handler(AssignmentProcessingError)
async def assignment_error_handler(request, exc: AssignmentProcessingError):
    logger.error(f"Assignment processing error: {exc}")
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "assignment_processing_error", exc)


@app.exception_handler(MatchingError)
async def matching_error_handler(request, exc: MatchingError):
    """Handle matching pipeline errors."""
    logger.error(f"Matching error: {exc}")
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "matching_error", exc)


@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="ok", version=settings.version)


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "app": settings.app_name,
        "version": settings.version,
        "taxonomy_version": TAXONOMY_VERSION,
        "endpoints": {
            "health": "/health",
            "upload_cv": "/consultants/upload-cv",
            "consultants": "/consultants",
            "bulk_import": "/consultants/bulk",
            "assignments": "/assignments",
            "match_assignment": "/assignments/{assignment_id}/match",
            "get_matches": "/assignments/{assignment_id}/matches",
            "preview_match": "/assignments/{assignment_id}/preview/{consultant_id}",
            "skill_alerts": "/skill-alerts",
            "chat": "/assistant/chat",
            "automation_blueprint": "/assistant/automation-blueprint",
            "docs": "/docs",
        },
    }


@app.post(
    "/consultants/upload-cv",
    response_model=UploadCVResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_cv(
    file: UploadFile = File(..., description="CV file (PDF, Word or plain text)"),
    linkedin_url: str | None = Form(default=None, max_length=500),
    personal_description: str | None = Form(default=None),
    personal_tagline: str | None = Form(default=None, max_length=500),
    name: str | None = Form(default=None),
    email: str | None = Form(default=None),
    phone: str | None = Form(default=None),
    location: str | None = Form(default=None),
    is_my_consultant: bool = Form(default=False),
    session: AsyncSession = Depends(get_session),
    functions: FunctionsClient = Depends(get_functions_client),
) -> UploadCVResponse:
    """Register a consultant from an uploaded CV.

    This endpoint:
    1. Validates the file (type and size)
    2. Analyses the CV (and LinkedIn profile, if given) via the hosted functions
    3. Builds and persists the consultant profile
    4. Sends welcome/admin e-mails and skill alerts
    """
    logger.info(f"Received CV upload: {file.filename}")

    try:
        personal_info = PersonalInfo(name=name, email=email, phone=phone, location=location)
    except ValidationError as e:
        await file.close()
        raise RequestValidationError(e.errors(include_url=False)) from e

    max_bytes = settings.upload.max_cv_bytes
    try:
        if file.size is not None:
            validate_cv_upload(file.filename or "", file.size)
        # One byte past the limit is enough to reject an oversized upload
        content = await file.read(max_bytes + 1)
        processed = await register_consultant_from_cv(
            session,
            functions,
            content=content,
            filename=file.filename or "",
            content_type=file.content_type,
            linkedin_url=linkedin_url,
            personal_description=personal_description,
            personal_tagline=personal_tagline,
            personal_info=personal_info,
            is_my_consultant=is_my_consultant,
        )
    finally:
        await file.close()

    consultant = processed.consultant
    return UploadCVResponse(
        status="success",
        consultant=ConsultantDTO.model_validate(consultant),
        skills_source=processed.skills_source,
        linkedin_analyzed=processed.linkedin_analyzed,
        welcome_email_sent=processed.notifications.welcome_email_sent,
        admin_notified=processed.notifications.admin_notified,
        skill_alerts_sent=processed.notifications.skill_alerts.emails_sent,
        warnings=processed.warnings,
        message=f"Successfully registered {consultant.name}",
    )


@app.post(
    "/consultants",
    response_model=ConsultantDTO,
    status_code=status.HTTP_201_CREATED,
)
async def create_consultant_endpoint(
    request: ConsultantCreate,
    session: AsyncSession = Depends(get_session),
) -> ConsultantDTO:
    """Create a consultant from a complete profile."""
    logger.info(f"Creating consultant: {request.name}")
    try:
        consultant = await create_consultant(session, request)
    except Exception as e:
        logger.error(f"Unexpected error creating consultant: {e}", exc_info=True)
        await session.rollback()
        raise ConsultantProcessingError(f"Failed to create consultant: {e}") from e
    return ConsultantDTO.model_validate(consultant)


@app.post(
    "/consultants/bulk",
    response_model=BulkImportResponse,
    status_code=status.HTTP_201_CREATED,
)
async def bulk_import(
    file: UploadFile = File(..., description="CSV or Excel file with one consultant per row"),
    session: AsyncSession = Depends(get_session),
) -> BulkImportResponse:
    """Import consultants from a CSV or Excel sheet."""
    if not file.filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Filename is required",
        )

    logger.info(f"Received bulk import: {file.filename}")
    try:
        content = await file.read()
        result = await import_consultants_from_file(session, BytesIO(content), file.filename)
    finally:
        await file.close()

    return BulkImportResponse(
        status="success" if result.created else "no_rows_imported",
        total_rows=result.total_rows,
        created=len(result.created),
        consultant_ids=[c.id for c in result.created],
        skipped=[SkippedRowDTO(row=s.row, reason=s.reason) for s in result.skipped],
        message=f"Imported {len(result.created)} of {result.total_rows} rows",
    )


@app.get("/consultants", response_model=list[ConsultantDTO])
async def get_consultants(
    skill: str | None = Query(default=None, description="Case-insensitive skill substring"),
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    session: AsyncSession = Depends(get_session),
) -> list[ConsultantDTO]:
    consultants = await list_consultants(session, skill=skill, limit=limit, offset=offset)
    return [ConsultantDTO.model_validate(c) for c in consultants]


@app.get("/consultants/{consultant_id}", response_model=ConsultantDTO)
async def get_consultant_endpoint(
    consultant_id: int,
    session: AsyncSession = Depends(get_session),
) -> ConsultantDTO:
    return ConsultantDTO.model_validate(await get_consultant(session, consultant_id))


@app.post(
    "/assignments",
    response_model=AssignmentDTO,
    status_code=status.HTTP_201_CREATED,
)
async def create_assignment_endpoint(
    request: AssignmentCreate,
    session: AsyncSession = Depends(get_session),
) -> AssignmentDTO:
    """Create a client assignment."""
    logger.info(f"Creating assignment: {request.title}")
    assignment = await create_assignment(session, request)
    return AssignmentDTO.model_validate(assignment)


@app.get("/assignments", response_model=list[AssignmentDTO])
async def get_assignments(
    status_filter: str | None = Query(default=None, alias="status"),
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    session: AsyncSession = Depends(get_session),
) -> list[AssignmentDTO]:
    assignments = await list_assignments(session, status=status_filter, limit=limit, offset=offset)
    return [AssignmentDTO.model_validate(a) for a in assignments]


@app.get("/assignments/{assignment_id}", response_model=AssignmentDTO)
async def get_assignment_endpoint(
    assignment_id: int,
    session: AsyncSession = Depends(get_session),
) -> AssignmentDTO:
    return AssignmentDTO.model_validate(await get_assignment(session, assignment_id))


@app.post(
    "/assignments/{assignment_id}/match",
    response_model=MatchResponse,
    status_code=status.HTTP_200_OK,
)
async def match_assignment(
    assignment_id: int,
    request: MatchRequest = MatchRequest(),
    session: AsyncSession = Depends(get_session),
) -> MatchResponse:
    """Score consultants against an assignment and store the top matches.

    Previous matches for the assignment are marked stale.
    """
    logger.info(f"Matching assignment {assignment_id}")

    shortlist = await match_assignment_to_consultants(
        session,
        assignment_id,
        top_n=request.top_n,
        variant=request.variant,
    )

    return MatchResponse(
        status="success",
        assignment_id=shortlist.assignment_id,
        variant=shortlist.variant.value,
        candidates_scored=shortlist.candidates_scored,
        top_n=len(shortlist.matches),
        matches=[MatchResultDTO.model_validate(m) for m in shortlist.matches],
        computed_at=shortlist.computed_at.isoformat(),
        message=f"Matched {len(shortlist.matches)} consultants for assignment {assignment_id}",
    )


@app.get(
    "/assignments/{assignment_id}/matches",
    response_model=StoredMatchesResponse,
)
async def get_matches(
    assignment_id: int,
    include_stale: bool = Query(default=False),
    session: AsyncSession = Depends(get_session),
) -> StoredMatchesResponse:
    """Stored matches for an assignment, best rank first."""
    matches = await get_stored_matches(session, assignment_id, include_stale=include_stale)
    return StoredMatchesResponse(
        assignment_id=assignment_id,
        matches=[StoredMatchDTO.model_validate(m) for m in matches],
        detail=None if matches else "No matches computed yet. Run matching first.",
    )


@app.get(
    "/assignments/{assignment_id}/preview/{consultant_id}",
    response_model=MatchResultDTO,
)
async def preview_assignment_match(
    assignment_id: int,
    consultant_id: int,
    variant: ScoringVariant | None = Query(default=None),
    session: AsyncSession = Depends(get_session),
) -> MatchResultDTO:
    """Score one consultant against one assignment without storing it."""
    result = await preview_match(session, assignment_id, consultant_id, variant=variant)
    return MatchResultDTO.model_validate(result)


@app.post(
    "/skill-alerts",
    response_model=SkillAlertDTO,
    status_code=status.HTTP_201_CREATED,
)
async def subscribe_skill_alert(
    request: SkillAlertCreate,
    session: AsyncSession = Depends(get_session),
) -> SkillAlertDTO:
    """Subscribe to e-mails about newly registered consultants with these skills."""
    alert = await create_skill_alert(session, request)
    return SkillAlertDTO.model_validate(alert)


@app.post("/assistant/chat", response_model=ChatResponse)
async def assistant_chat(
    request: ChatRequest,
    functions: FunctionsClient = Depends(get_functions_client),
) -> ChatResponse:
    """Proxy to the chat assistant; answers with a fixed apology on failure."""
    try:
        answer = await functions.chat(request.message, context=request.context, role=request.role)
    except FunctionInvocationError as e:
        logger.warning(f"Chat assistant unavailable: {e}")
        return ChatResponse(response=CHAT_FALLBACK, fallback=True)
    return ChatResponse(response=answer or CHAT_FALLBACK, fallback=not answer)


@app.post("/assistant/automation-blueprint")
async def automation_blueprint(
    automation_data: dict[str, Any],
    functions: FunctionsClient = Depends(get_functions_client),
) -> dict[str, Any]:
    """Proxy to the automation blueprint generator."""
    return await functions.automation_blueprint(automation_data)
