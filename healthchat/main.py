# healthchat/main.py
"""
FastAPI application exposing a single chat endpoint.

Flow per request:
1. Resolve the body (`message` or `messages`) to one user utterance and
   a session id.
2. Take the session's lock and read its transcript.
3. Build system prompt + transcript + new user turn and call the model.
4. On success, record the exchange and return the reply envelope.
5. On failure, return a 500 body with a fallback reply; the transcript
   is left as it was.

Run:
    uvicorn healthchat.main:app --port 3001
"""

import asyncio
import logging
from functools import lru_cache
from typing import Optional

import uvicorn
from fastapi import Body, Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from healthchat.config import Settings, get_settings
from healthchat.llm.prompt import build_messages
from healthchat.llm.providers import CompletionProvider, ProviderError, build_provider
from healthchat.logging_config import configure_logging
from healthchat.schemas import ChatRequest, ChatResponse, ErrorResponse
from healthchat.sessions import SessionStore

# ---------------------------
# Configuration
# ---------------------------
settings = get_settings()
configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

# Process-wide transcript store; lost on restart.
session_store = SessionStore()

app = FastAPI(title="Healthy Living Advisor API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_allow_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_store() -> SessionStore:
    return session_store


@lru_cache(maxsize=1)
def get_provider() -> CompletionProvider:
    return build_provider(get_settings())


def _error_response(status_code: int, error: str, message: str) -> JSONResponse:
    body = ErrorResponse(error=error, message=message)
    return JSONResponse(status_code=status_code, content=body.model_dump())


async def _call_model(provider: CompletionProvider, messages, timeout: float) -> str:
    """
    Make the single, time-bounded provider call for a request.

    Raises
    ------
    ProviderError
        On any provider failure, including the timeout expiring.
    """
    try:
        completion = await asyncio.wait_for(provider.invoke(messages), timeout=timeout)
    except asyncio.TimeoutError:
        raise ProviderError(f"Model call timed out after {timeout:g} seconds") from None
    return completion.content


@app.post(
    "/chat",
    response_model=ChatResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def chat(
    req: Optional[ChatRequest] = Body(default=None),
    store: SessionStore = Depends(get_store),
    provider: CompletionProvider = Depends(get_provider),
    settings: Settings = Depends(get_settings),
):
    """
    Relay one user utterance to the model within its session.

    Parameters
    ----------
    req : ChatRequest, optional
        `{message}` or `{messages: [...]}`, plus optional `sessionId`.
        A missing or malformed body is relayed with no user message.

    Returns
    -------
    ChatResponse | JSONResponse
        The reply envelope, or an `ErrorResponse` body with status 500
        (model failure) or 400 (no user message, when rejection is on).
    """
    if req is None:
        req = ChatRequest()
    logger.debug("Raw request body: %s", req.model_dump(by_alias=True, exclude_none=True))
    turn = req.to_turn()
    logger.info("User message session=%s source=%s text=%r",
                turn.session_id, turn.source, turn.utterance)

    if turn.utterance is None and settings.reject_empty_message:
        logger.warning("Rejecting request without a user message session=%s", turn.session_id)
        return _error_response(400, "Bad request", "No user message found")

    user_text = turn.utterance or ""

    async with store.lock(turn.session_id):
        store.get_or_create(turn.session_id)
        messages = build_messages(store.read(turn.session_id), user_text)
        logger.debug("Sending %d messages to model session=%s", len(messages), turn.session_id)

        try:
            reply = await _call_model(provider, messages, settings.provider_timeout_seconds)
        except ProviderError as exc:
            logger.exception("Model error session=%s: %s", turn.session_id, exc)
            return _error_response(500, "Model call failed", str(exc))
        except Exception as exc:
            logger.exception("Unexpected model error session=%s", turn.session_id)
            return _error_response(500, "Model call failed", str(exc))

        store.append(turn.session_id, user_text, reply)

    return ChatResponse.from_reply(reply)


@app.get("/health")
def health(store: SessionStore = Depends(get_store)) -> dict:
    return {"status": "ok", "sessions": len(store)}


def run() -> None:
    """Console entry point: serve the app on $PORT (default 3001)."""
    logger.info("AI API server running on port %s", settings.port)
    uvicorn.run(app, host="0.0.0.0", port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
