import logging
import time
from contextlib import asynccontextmanager
from datetime import date, datetime, timezone
from typing import List, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from trip_planner.config import get_settings
from trip_planner.errors import InvalidMessageError, ModelGatewayError, OrchestrationTimeoutError
from trip_planner.gateway import extract_text
from trip_planner.middleware.event_collector import get_events, reset_events
from trip_planner.orchestrator import Orchestrator, build_orchestrator

logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    app.state.orchestrator = build_orchestrator(settings)
    logger.info(
        "Trip Planner service started (provider=%s, max_tool_iterations=%d)",
        settings.model_provider, settings.max_tool_iterations,
    )
    yield
    await app.state.orchestrator.gateway.aclose()
    logger.info("Trip Planner service shutting down")


app = FastAPI(title="Trip Planner", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[get_settings().cors_origin],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info("%s %s", request.method, request.url.path)
    start = time.time()
    response = await call_next(request)
    duration_ms = (time.time() - start) * 1000
    logger.info("%s %s completed %d in %.2fms", request.method, request.url.path, response.status_code, duration_ms)
    return response


def get_orchestrator(request: Request) -> Orchestrator:
    return request.app.state.orchestrator


class TripContext(BaseModel):
    """Trip form fields sent alongside a chat message. Unknown keys are kept."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    destination: Optional[str] = None
    start_date: Optional[date] = Field(None, alias="startDate")
    end_date: Optional[date] = Field(None, alias="endDate")
    budget_inr: Optional[int] = Field(None, alias="budgetInr", ge=0)
    adults: Optional[int] = Field(None, ge=1)
    children: Optional[int] = Field(None, ge=0)
    interests: Optional[List[str]] = None
    other_interests: Optional[str] = Field(None, alias="otherInterests")
    hotel_class: Optional[str] = Field(None, alias="hotelClass")
    diet: Optional[str] = None


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(..., min_length=1, max_length=2000)
    conversation_id: Optional[str] = Field(None, alias="conversationId")
    context: Optional[TripContext] = None


def _error(status_code: int, message: str, details=None) -> JSONResponse:
    content = {"success": False, "error": message}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(_request: Request, exc: RequestValidationError):
    details = [
        {"field": ".".join(str(p) for p in err["loc"][1:]), "message": err["msg"]}
        for err in exc.errors()
    ]
    return _error(422, "Invalid request", details)


@app.get("/health")
async def health(orchestrator: Orchestrator = Depends(get_orchestrator)):
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "model": await orchestrator.gateway.health(),
    }


def _serialize_messages(messages) -> list[dict]:
    """Build a chronological debug trace from the stored history."""
    trace = []
    for msg in messages:
        text = extract_text(msg.content)
        entry = {"type": type(msg).__name__, "content": text}

        if getattr(msg, "tool_calls", None):
            entry["tool_calls"] = [
                {"id": tc.get("id"), "name": tc["name"], "args": tc.get("args", {})}
                for tc in msg.tool_calls
            ]
            # Text next to tool calls is the model's reasoning for calling them.
            if text.strip():
                entry["reasoning"] = text

        if getattr(msg, "tool_call_id", None):
            entry["tool_call_id"] = msg.tool_call_id
            entry["status"] = getattr(msg, "status", "success")

        if getattr(msg, "name", None):
            entry["tool_name"] = msg.name

        trace.append(entry)
    return trace


@app.post("/api/chat")
async def chat(req: ChatRequest, orchestrator: Orchestrator = Depends(get_orchestrator)):
    context = req.context.model_dump(by_alias=True, exclude_none=True, mode="json") if req.context else None
    logger.info("Chat request for conversation=%s", req.conversation_id or "<new>")
    reset_events()
    try:
        result = await orchestrator.chat(req.message, req.conversation_id, context)
    except InvalidMessageError as e:
        return _error(422, str(e))
    except OrchestrationTimeoutError:
        logger.exception("Chat turn timed out for conversation=%s", req.conversation_id)
        return _error(504, "The assistant took too long to respond. Please try again.")
    except ModelGatewayError as e:
        if isinstance(e, TimeoutError):
            logger.exception("Model timed out for conversation=%s", req.conversation_id)
            return _error(504, "The assistant took too long to respond. Please try again.")
        logger.exception("Model gateway failed for conversation=%s", req.conversation_id)
        return _error(502, "The AI service is unavailable right now. Please try again later.")

    return {
        "success": True,
        "data": result.model_dump(by_alias=True),
        "events": get_events(),
    }


@app.delete("/api/conversation/{conversation_id}")
async def clear_conversation(conversation_id: str, orchestrator: Orchestrator = Depends(get_orchestrator)):
    await orchestrator.clear_conversation(conversation_id)
    return {"success": True, "message": "Conversation cleared"}


@app.get("/api/conversation/{conversation_id}")
async def conversation_trace(conversation_id: str, orchestrator: Orchestrator = Depends(get_orchestrator)):
    history = orchestrator.get_history(conversation_id)
    if not history:
        return _error(404, "Conversation not found")
    return {
        "success": True,
        "conversationId": conversation_id,
        "messages": _serialize_messages(history),
    }
