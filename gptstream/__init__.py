"""
gptstream

Async client for streamed chat completions from OpenAI-compatible
endpoints, delivering the reply as a lazy, cancellable sequence of
text fragments.

Components:
- frames: SSE line classification (end marker, data line, ignored line)
- decoder: chunk payload decoding into text fragments
- client: request/response lifecycle and the fragment stream
- request_builder: outbound requests, auth headers, curl rendering
- diagnostics: side-channel for line, decode and termination events
- api / main: SSE relay and command line entry point
"""

from .client import ChatStreamClient, FragmentStream
from .errors import RequestFailed, ResponseParsingFailed, StreamError
from .models import ChatMessage, ChatRequest, ModelChoice, Role

__version__ = "0.1.0"
