"""
HTTP API for the multi-source agent.

Endpoints:
- POST /api/chat     - run a query through the orchestrator
- POST /api/approve  - approve and run a pending command
- POST /api/reject   - reject a pending command
- GET  /api/pending  - list pending commands, oldest first
- GET  /health       - service health and configuration issues

Approve is a plain (sync) route so FastAPI runs it in its threadpool and a
long-running command never blocks the event loop.
"""

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .schemas import (
    ApprovalRequestPayload,
    ApproveResponse,
    ChatRequest,
    ChatResponse,
    CommandDecisionRequest,
    CommandRejectedPayload,
    CommandResultPayload,
    ErrorResponse,
    HealthResponse,
    PendingCommandResponse,
    PendingListResponse,
    RejectResponse,
)
from ..agents.orchestrator import Orchestrator, build_orchestrator
from ..core.config import API_CORS_ORIGINS, CHAT_API_ENABLED, VERSION, debug_enabled, validate_config
from ..core.errors import NotFound
from util.logging import logger

_orchestrator = None


def get_orchestrator() -> Orchestrator:
    """Process-wide orchestrator, built on first use."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = build_orchestrator()
    return _orchestrator


app = FastAPI(
    title="Multi-Source Agent API",
    version=VERSION,
    description="Routes questions to a music database, a document corpus or approved shell commands",
    docs_url="/docs" if debug_enabled() else None,
    redoc_url="/redoc" if debug_enabled() else None
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=API_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound):
    return JSONResponse(
        status_code=404,
        content=ErrorResponse(
            error_type=exc.code,
            message=str(exc),
            details={"commandId": exc.command_id}
        ).model_dump(mode="json")
    )


@app.get("/health", response_model=HealthResponse)
def health_check_endpoint(orchestrator: Orchestrator = Depends(get_orchestrator)):
    """Check service health."""
    issues = validate_config()
    return HealthResponse(
        status="healthy" if not issues else "degraded",
        version=VERSION,
        llm_enabled=orchestrator.use_llm,
        pending_commands=len(orchestrator.store),
        config_issues=issues
    )


router = APIRouter(prefix="/api")


@router.post("/chat", response_model=ChatResponse)
def chat_endpoint(request: ChatRequest, orchestrator: Orchestrator = Depends(get_orchestrator)):
    """Answer a free-text query."""
    result = orchestrator.process_query(request.message)
    approval = result.approval_request
    return ChatResponse(
        response=result.content,
        tool_name=result.tool_name.value if result.tool_name else None,
        reasoning=result.reasoning,
        error=result.error,
        approval_request=ApprovalRequestPayload(**approval) if approval else None
    )


@router.post("/approve", response_model=ApproveResponse)
def approve_endpoint(request: CommandDecisionRequest, orchestrator: Orchestrator = Depends(get_orchestrator)):
    """Approve a pending command and return its output."""
    result = orchestrator.approve_command(request.command_id)
    return ApproveResponse(result=CommandResultPayload(**result.to_dict()))


@router.post("/reject", response_model=RejectResponse)
def reject_endpoint(request: CommandDecisionRequest, orchestrator: Orchestrator = Depends(get_orchestrator)):
    """Reject a pending command."""
    rejection = orchestrator.reject_command(request.command_id)
    return RejectResponse(result=CommandRejectedPayload(**rejection.to_dict()))


@router.get("/pending", response_model=PendingListResponse)
def pending_endpoint(orchestrator: Orchestrator = Depends(get_orchestrator)):
    """List commands awaiting a decision."""
    return PendingListResponse(pending=[
        PendingCommandResponse(
            id=entry.id,
            command=entry.command,
            description=entry.description,
            created_at=entry.created_at
        )
        for entry in orchestrator.pending_commands()
    ])


if CHAT_API_ENABLED:
    app.include_router(router)
else:
    logger.info("Chat API disabled - set CHAT_API_ENABLED=true to enable /api routes")
