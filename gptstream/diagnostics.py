"""
Diagnostic side-channel for streamed exchanges.

The stream reports every received line, every decode failure and every
terminal transition to a sink. Sinks observe only: whatever a sink does,
the fragment sequence is unaffected.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class DiagnosticKind(str, Enum):
    LINE_RECEIVED = "line_received"
    DECODE_FAILED = "decode_failed"
    END_MARKER = "end_marker"
    STREAM_FINISHED = "stream_finished"
    STREAM_FAILED = "stream_failed"
    STREAM_CANCELLED = "stream_cancelled"
    REQUEST_FAILED = "request_failed"


@dataclass
class DiagnosticEvent:
    """One observation from a streamed exchange."""
    kind: DiagnosticKind
    line_number: int = 0
    detail: str = ""
    error: Optional[BaseException] = None


DiagnosticSink = Callable[[DiagnosticEvent], None]


def log_diagnostics(event: DiagnosticEvent) -> None:
    """Default sink: write events to the module logger."""
    kind = event.kind

    if kind == DiagnosticKind.LINE_RECEIVED:
        logger.debug(f"Received line {event.line_number}: {event.detail}")
    elif kind == DiagnosticKind.DECODE_FAILED:
        logger.warning(f"Failed to decode line {event.line_number}: {event.error}. Data: {event.detail[:200]}")
    elif kind == DiagnosticKind.END_MARKER:
        logger.debug(f"End of stream marker at line {event.line_number}")
    elif kind == DiagnosticKind.STREAM_FINISHED:
        logger.debug(f"Stream processing finished. Processed {event.line_number} lines")
    elif kind == DiagnosticKind.STREAM_CANCELLED:
        logger.info(f"Stream cancelled by consumer after {event.line_number} lines")
    elif kind in (DiagnosticKind.STREAM_FAILED, DiagnosticKind.REQUEST_FAILED):
        logger.error(f"{event.detail}: {event.error}")


def discard(event: DiagnosticEvent) -> None:
    """Sink that drops every event."""


def emit(sink: DiagnosticSink, event: DiagnosticEvent) -> None:
    """Deliver an event; a failing sink is logged and otherwise ignored."""
    try:
        sink(event)
    except Exception:
        logger.exception(f"Diagnostic sink failed on {event.kind.value} event")
