"""Streaming chat completion client."""

import asyncio
import logging
from typing import AsyncIterator, List, Optional, Union

import httpx

from .config import config
from .decoder import DecodeFailed, Fragment, decode_payload
from .diagnostics import DiagnosticEvent, DiagnosticKind, DiagnosticSink, emit, log_diagnostics
from .errors import RequestFailed, ResponseParsingFailed, translate_error
from .frames import Candidate, Terminate, parse_line
from .models import ChatMessage, ChatRequest, ExchangeState, ModelChoice, conversation
from .request_builder import RequestBuilder, to_curl

logger = logging.getLogger(__name__)


def _is_status_ok(status_code: int) -> bool:
    return 200 <= status_code <= 299


class FragmentStream:
    """
    Lazily produced text fragments of one streamed completion.

    Owns the HTTP response: it is closed when the stream is exhausted,
    hits the end marker, fails, or is closed by the consumer.

    Breaking out of a bare `async for` does not close anything: the
    response then stays open until the garbage collector finalizes the
    stream. Iterate inside `async with`, or call `aclose()`, to release
    the connection as soon as you stop reading.
    """

    def __init__(self, response: httpx.Response, diagnostics: DiagnosticSink = log_diagnostics):
        self.response = response
        self.state = ExchangeState.STREAMING
        self.lines_processed = 0
        self._diagnostics = diagnostics
        self._fragments = self._produce()

    def __aiter__(self) -> "FragmentStream":
        return self

    async def __anext__(self) -> str:
        return await self._fragments.__anext__()

    async def __aenter__(self) -> "FragmentStream":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Stop consuming lines and release the response."""
        await self._fragments.aclose()
        # A generator closed before its first pull never runs its cleanup
        if not self.state.is_terminal:
            self._finish(ExchangeState.CANCELLED)
        await self.response.aclose()

    def _report(self, kind: DiagnosticKind, detail: str = "", error: Optional[BaseException] = None) -> None:
        emit(self._diagnostics, DiagnosticEvent(kind, self.lines_processed, detail, error))

    def _finish(self, state: ExchangeState) -> None:
        self.state = state
        if state == ExchangeState.TERMINATED:
            self._report(DiagnosticKind.STREAM_FINISHED)
        elif state == ExchangeState.CANCELLED:
            self._report(DiagnosticKind.STREAM_CANCELLED)

    async def _produce(self) -> AsyncIterator[str]:
        try:
            try:
                async for line in self.response.aiter_lines():
                    self.lines_processed += 1
                    self._report(DiagnosticKind.LINE_RECEIVED, line)

                    frame = parse_line(line)

                    if isinstance(frame, Terminate):
                        self._report(DiagnosticKind.END_MARKER)
                        break

                    if not isinstance(frame, Candidate):
                        continue

                    result = decode_payload(frame.payload)

                    if isinstance(result, Fragment):
                        yield result.text
                    elif isinstance(result, DecodeFailed):
                        self._report(DiagnosticKind.DECODE_FAILED, result.payload, result.cause)

            except Exception as e:
                # Cancellation and close are BaseException and fall through to the outer clause
                self.state = ExchangeState.ERRORED_MID_STREAM
                self._report(DiagnosticKind.STREAM_FAILED, "Error while reading stream lines", e)
                raise ResponseParsingFailed(f"Stream interrupted: {e!r}", cause=e) from e

            self._finish(ExchangeState.TERMINATED)

        except (GeneratorExit, asyncio.CancelledError):
            self._finish(ExchangeState.CANCELLED)
            raise

        finally:
            await self.response.aclose()


class ChatStreamClient:
    """
    Async client for streamed chat completions.

    Handles:
    - Request building with auth headers (stream mode always forced)
    - Status validation before any fragment is produced
    - Incremental SSE decoding into text fragments
    - curl rendering of the exact request, for debugging
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        default_model: Optional[str] = None,
        organization: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        diagnostics: DiagnosticSink = log_diagnostics,
    ):
        self._owns_client = http_client is None
        self.client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(config.timeout, connect=config.connect_timeout)
        )
        self.default_model = default_model or config.default_model
        self.diagnostics = diagnostics
        self.builder = RequestBuilder(
            self.client,
            base_url=base_url or config.base_url,
            api_key=api_key if api_key is not None else config.api_key,
            organization=organization if organization is not None else config.organization,
        )

    async def __aenter__(self) -> "ChatStreamClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self):
        """Close HTTP client, unless it was handed in by the caller."""
        if self._owns_client:
            await self.client.aclose()

    def _resolve_model(self, model: Union[ModelChoice, str]) -> str:
        if isinstance(model, str):
            model = ModelChoice.specific(model)
        return model.resolve(self.default_model)

    async def ask(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        model: Union[ModelChoice, str] = ModelChoice.default(),
    ) -> FragmentStream:
        """
        Stream the answer to a single prompt.

        Args:
            prompt: The user prompt
            system_prompt: Optional instructions, sent before the prompt
            model: Model to use; the client default unless given

        The connection is released promptly on early exit only when the
        returned stream is used in `async with` or closed with `aclose()`.
        """
        return await self.ask_messages(conversation(prompt, system_prompt), model=model)

    async def ask_messages(
        self,
        messages: List[ChatMessage],
        model: Union[ModelChoice, str] = ModelChoice.default(),
    ) -> FragmentStream:
        """Stream the answer to a whole conversation. Close the stream as for `ask`."""
        request = ChatRequest.streamed(model=self._resolve_model(model), messages=messages)
        return await self.ask_request(request)

    async def ask_request(self, chat_request: ChatRequest) -> FragmentStream:
        """
        Stream the answer to a fully custom request.

        The request is sent with `stream` forced on; the caller's object is
        not modified. Raises StreamError before returning if the request
        cannot be built or sent, or the status is not 2xx. Errors while
        reading the body are raised from the returned stream as
        ResponseParsingFailed.

        Use the stream in `async with` (or call `aclose()`) so stopping
        early releases the connection immediately.
        """
        logger.info(f"Starting chat stream: model={chat_request.model}, messages={len(chat_request.messages)}")

        try:
            request = self.builder.build(chat_request.as_streamed())
            logger.debug(f"Exchange state -> {ExchangeState.REQUEST_SENT.value}")
            response = await self.client.send(request, stream=True)
        except Exception as e:
            error = translate_error(e)
            self._fail_before_body("Request failed", error)
            raise error from e

        logger.debug(f"Exchange state -> {ExchangeState.AWAITING_RESPONSE.value} (status {response.status_code})")

        if not _is_status_ok(response.status_code):
            await response.aclose()
            error = RequestFailed.for_status(response.status_code)
            self._fail_before_body("Request rejected", error)
            raise error

        return FragmentStream(response, diagnostics=self.diagnostics)

    def _fail_before_body(self, detail: str, error: BaseException) -> None:
        logger.debug(f"Exchange state -> {ExchangeState.ERRORED_BEFORE_BODY.value}")
        emit(self.diagnostics, DiagnosticEvent(DiagnosticKind.REQUEST_FAILED, detail=detail, error=error))

    def curl(self, chat_request: ChatRequest, pretty: bool = True) -> str:
        """
        Render the request this client would send as a curl command.

        The request gets `stream: true`, as every request from this client
        does. Useful for reproducing an exchange by hand.
        """
        request = self.builder.build(chat_request.as_streamed())
        return to_curl(request, pretty=pretty)
