"""
OpenAI-compatible relay endpoints.

Forwards chat requests upstream through the streaming client and
re-emits the decoded fragments as `chat.completion.chunk` SSE events.
Useful for checking what the decoder sees without writing a client.
"""

import json
import logging
import time
import uuid
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, StreamingResponse

from .client import ChatStreamClient, FragmentStream
from .errors import RequestFailed, StreamError
from .models import ChatRequest

logger = logging.getLogger(__name__)

router = APIRouter()


def get_client(request: Request) -> ChatStreamClient:
    return request.app.state.client


@router.post("/v1/chat/completions")
async def chat_completions(chat_request: ChatRequest, request: Request):
    """
    Relay a chat completion as a stream.

    Upstream setup failures (connection errors, non-2xx status) are
    answered with 502 before any event is sent.
    """
    client = get_client(request)

    try:
        stream = await client.ask_request(chat_request)
    except StreamError as e:
        return _error_response(e)

    logger.info(f"Relaying stream: model={chat_request.model}, messages={len(chat_request.messages)}")

    return StreamingResponse(
        _relay(stream, chat_request.model),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
        },
    )


@router.post("/v1/curl")
async def curl(chat_request: ChatRequest, request: Request, pretty: bool = True):
    """Return the curl command equivalent to relaying this request."""
    client = get_client(request)
    return {"curl": client.curl(chat_request, pretty=pretty)}


async def _relay(stream: FragmentStream, model: str) -> AsyncIterator[str]:
    """
    Convert fragments to OpenAI-compatible SSE.

    A failure after the first event can no longer change the status code,
    so it is sent as an `{"error": ...}` data line before `[DONE]`, the
    way OpenAI reports errors inside a stream.
    """
    completion_id = f"chatcmpl-{uuid.uuid4().hex[:8]}"
    created = int(time.time())

    async with stream:
        try:
            async for fragment in stream:
                yield _format_sse_chunk(completion_id, created, model, {"content": fragment})
        except StreamError as e:
            logger.error(f"Relay stream failed: {e}")
            yield _format_sse_data(_error_body(e))
        else:
            yield _format_sse_chunk(completion_id, created, model, {}, finish_reason="stop")

    yield "data: [DONE]\n\n"


def _error_body(error: StreamError) -> Dict[str, Any]:
    body: Dict[str, Any] = {"error": {"message": error.message, "type": type(error).__name__}}
    if isinstance(error, RequestFailed) and error.status_code is not None:
        body["error"]["upstream_status"] = error.status_code
    return body


def _error_response(error: StreamError) -> JSONResponse:
    return JSONResponse(status_code=502, content=_error_body(error))


# =============================================================================
# SSE Formatting Helpers
# =============================================================================

def _format_sse_chunk(
    id: str,
    created: int,
    model: str,
    delta: Dict[str, str],
    finish_reason: Optional[str] = None,
) -> str:
    return _format_sse_data({
        "id": id,
        "object": "chat.completion.chunk",
        "created": created,
        "model": model,
        "choices": [{
            "index": 0,
            "delta": delta,
            "finish_reason": finish_reason,
        }]
    })


def _format_sse_data(data: Dict[str, Any]) -> str:
    return f"data: {json.dumps(data)}\n\n"
