from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .agent_pipeline import InvalidConversationError, SupportAssistantAgent
from .config import load_settings
from .knowledge.knowledge_store import KnowledgeStore
from .model_dispatcher import build_dispatcher
from .models import ChatRequest, ChatResponse, DebugInfo
from .ollama_client import OllamaTransport
from .order_lookup import DEMO_ORDERS, StaticOrderLookup
from .prompt_loader import SYSTEM_PROMPT_FILE, load_prompt

BASE_DIR = Path(__file__).resolve().parent

ENV_PATH = BASE_DIR / ".." / ".env"
if ENV_PATH.exists():
    load_dotenv(ENV_PATH, override=False)

log_level_name = os.getenv("LOG_LEVEL", "INFO").upper()
log_level = getattr(logging, log_level_name, logging.INFO)
if not logging.getLogger().handlers:
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

logging.getLogger("trackracer").setLevel(log_level)
logger = logging.getLogger("trackracer.api")

MALFORMED_REQUEST_ERROR = "Messages array required"
SERVER_ERROR = "Failed to process chat"

app = FastAPI(title="Track Racer Support Assistant")

settings = load_settings()
knowledge_store = KnowledgeStore(settings.knowledge_dir)
dispatcher = build_dispatcher(
    settings,
    transport=OllamaTransport(timeout=settings.request_timeout),
    base_prompt=load_prompt(settings.prompts_dir / SYSTEM_PROMPT_FILE),
)
agent = SupportAssistantAgent(
    knowledge_store=knowledge_store,
    dispatcher=dispatcher,
    order_lookup=StaticOrderLookup(orders=DEMO_ORDERS),
)


@app.exception_handler(RequestValidationError)
async def malformed_request_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Purpose: Report malformed chat bodies as a client error.
    Inputs/Outputs: Inputs are the request and validation error; output is a 400 JSONResponse.
    Side Effects / State: Logs the validation detail at debug level.
    Dependencies: Registered on the FastAPI app for RequestValidationError.
    Failure Modes: None.
    If Removed: Malformed bodies surface as FastAPI's default 422 response.
    Testing Notes: Post {"messages": "x"} and verify status 400.
    """
    logger.debug("rejected malformed request path=%s errors=%s", request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"error": MALFORMED_REQUEST_ERROR})


@app.post("/api/chat", response_model=ChatResponse, response_model_exclude_none=True)
async def chat(request: ChatRequest):
    """Purpose: Handle chat requests and run the support pipeline.
    Inputs/Outputs: Input is ChatRequest; output is ChatResponse with reply text and intents.
    Side Effects / State: None persisted; knowledge is re-read per request.
    Dependencies: Uses SupportAssistantAgent and the loaded Settings.
    Failure Modes: InvalidConversationError maps to 400; any other exception is
        logged and returned as a generic 500 without detail.
    If Removed: Core chat functionality is unavailable.
    Testing Notes: Send a sample conversation with a fake dispatcher and verify the schema.
    """
    # Run the pipeline and shape the envelope; debug metadata only outside production.
    try:
        context = await agent.handle_message([message.model_dump() for message in request.messages])
    except InvalidConversationError as exc:
        return JSONResponse(status_code=400, content={"error": str(exc)})
    except Exception:
        logger.exception("chat request failed")
        return JSONResponse(status_code=500, content={"error": SERVER_ERROR})

    debug = DebugInfo(contextLength=len(context.context_text)) if settings.debug_metadata else None
    return ChatResponse(response=context.answer_text, intents=context.intents, debug=debug)
