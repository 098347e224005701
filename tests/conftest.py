"""Shared pytest fixtures for gptstream tests.

Provides a scripted response body and a factory for clients wired to
`httpx.MockTransport`, so no test touches the network.
"""

import asyncio
import json
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import httpx
import pytest

from gptstream.client import ChatStreamClient
from gptstream.diagnostics import DiagnosticEvent, DiagnosticKind

BASE_URL = "https://api.test"
API_KEY = "sk-test"
DEFAULT_MODEL = "gpt-test"


def chunk_line(content: Optional[str] = None, role: Optional[str] = None, finish_reason: Optional[str] = None) -> str:
    """A `data: ` line shaped like an OpenAI chat.completion.chunk."""
    delta = {}
    if role is not None:
        delta["role"] = role
    if content is not None:
        delta["content"] = content
    chunk = {
        "id": "chatcmpl-test",
        "object": "chat.completion.chunk",
        "model": DEFAULT_MODEL,
        "choices": [{"index": 0, "delta": delta, "finish_reason": finish_reason}],
    }
    return f"data: {json.dumps(chunk)}"


class ScriptedBody(httpx.AsyncByteStream):
    """Response body that serves one line per chunk and records what happened.

    Args:
        lines: Lines to serve, newline added to each.
        error: Raised after all lines have been served.
        hang: Block forever after all lines have been served.
    """

    def __init__(self, lines: List[str], error: Optional[Exception] = None, hang: bool = False):
        self.lines = lines
        self.error = error
        self.hang = hang
        self.served = 0
        self.closed = False

    async def __aiter__(self):
        for line in self.lines:
            self.served += 1
            yield f"{line}\n".encode("utf-8")
        if self.error is not None:
            raise self.error
        if self.hang:
            await asyncio.Event().wait()

    async def aclose(self) -> None:
        self.closed = True


@dataclass
class FakeUpstream:
    """What the mock transport answers with, and what it was asked."""
    body: ScriptedBody
    status_code: int = 200
    raise_on_send: Optional[Exception] = None
    requests: List[httpx.Request] = field(default_factory=list)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.raise_on_send is not None:
            raise self.raise_on_send
        return httpx.Response(
            self.status_code,
            headers={"content-type": "text/event-stream"},
            stream=self.body,
        )

    @property
    def last_body(self) -> dict:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def recorded_events() -> List[DiagnosticEvent]:
    return []


@pytest.fixture
def make_client(recorded_events) -> Callable[..., tuple]:
    """Factory returning a (client, upstream) pair for scripted lines."""

    def factory(
        lines: Optional[List[str]] = None,
        status_code: int = 200,
        error: Optional[Exception] = None,
        hang: bool = False,
        raise_on_send: Optional[Exception] = None,
    ):
        upstream = FakeUpstream(
            body=ScriptedBody(lines or [], error=error, hang=hang),
            status_code=status_code,
            raise_on_send=raise_on_send,
        )
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler))
        client = ChatStreamClient(
            api_key=API_KEY,
            base_url=BASE_URL,
            default_model=DEFAULT_MODEL,
            http_client=http_client,
            diagnostics=recorded_events.append,
        )
        return client, upstream

    return factory


def kinds(events: List[DiagnosticEvent]) -> List[DiagnosticKind]:
    return [e.kind for e in events]
