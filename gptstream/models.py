"""Data models for the streaming client."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict


# ============================================================================
# Chat Request Models
# ============================================================================

class Role(str, Enum):
    """Author of a chat message."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ChatMessage(BaseModel):
    """OpenAI chat message format."""
    model_config = ConfigDict(frozen=True)

    role: Role
    content: str


def conversation(prompt: str, system_prompt: Optional[str] = None) -> List[ChatMessage]:
    """Messages for a single prompt, the system prompt (if any) first."""
    messages = []
    if system_prompt is not None:
        messages.append(ChatMessage(role=Role.SYSTEM, content=system_prompt))
    messages.append(ChatMessage(role=Role.USER, content=prompt))
    return messages


class ChatRequest(BaseModel):
    """OpenAI chat completion request."""
    model: str
    messages: List[ChatMessage]
    stream: bool = False
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    n: Optional[int] = None
    stop: Optional[Union[str, List[str]]] = None
    max_tokens: Optional[int] = None
    presence_penalty: Optional[float] = None
    frequency_penalty: Optional[float] = None
    logit_bias: Optional[Dict[str, int]] = None
    user: Optional[str] = None

    @classmethod
    def streamed(cls, model: str, messages: List[ChatMessage], **params: Any) -> "ChatRequest":
        """Request with streaming enabled."""
        return cls(model=model, messages=messages, stream=True, **params)

    def as_streamed(self) -> "ChatRequest":
        """Copy of this request with `stream` forced on; the original is untouched."""
        return self.model_copy(update={"stream": True})

    def to_wire(self) -> Dict[str, Any]:
        """JSON body sent upstream, unset parameters omitted."""
        return self.model_dump(mode="json", exclude_none=True)


@dataclass(frozen=True)
class ModelChoice:
    """
    Which model a request should use.

    Either the client's configured default or a specific identifier.
    Resolved to a concrete identifier before the request is built.
    """
    identifier: Optional[str] = None

    @classmethod
    def default(cls) -> "ModelChoice":
        return cls()

    @classmethod
    def specific(cls, identifier: str) -> "ModelChoice":
        if not identifier:
            raise ValueError("Model identifier must not be empty")
        return cls(identifier)

    @property
    def is_default(self) -> bool:
        return self.identifier is None

    def resolve(self, default_model: str) -> str:
        return default_model if self.identifier is None else self.identifier


# ============================================================================
# Streamed Response Models
# ============================================================================

class Delta(BaseModel):
    """Incremental message content carried by one chunk."""
    role: Optional[str] = None
    content: Optional[str] = None


class StreamedChoice(BaseModel):
    index: Optional[int] = None
    delta: Delta
    finish_reason: Optional[str] = None


class StreamedChunk(BaseModel):
    """One `data: ` payload of a streamed chat completion."""
    choices: List[StreamedChoice]


# ============================================================================
# Exchange State
# ============================================================================

class ExchangeState(str, Enum):
    """Lifecycle of a single streamed exchange."""
    IDLE = "idle"
    REQUEST_SENT = "request_sent"
    AWAITING_RESPONSE = "awaiting_response"
    STREAMING = "streaming"
    TERMINATED = "terminated"
    ERRORED_BEFORE_BODY = "errored_before_body"
    ERRORED_MID_STREAM = "errored_mid_stream"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATES


_TERMINAL_STATES = {
    ExchangeState.TERMINATED,
    ExchangeState.ERRORED_BEFORE_BODY,
    ExchangeState.ERRORED_MID_STREAM,
    ExchangeState.CANCELLED,
}
