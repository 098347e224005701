"""
Server-sent-event line classification.

Every line read from a streamed completion is one of:
- Terminate: the `data: [DONE]` end marker
- Candidate: a `data: ` line whose payload should be decoded
- Ignore: anything else (keep-alives, comments, other SSE fields)
"""

from dataclasses import dataclass
from typing import Union

DATA_PREFIX = "data: "
END_MARKER = "data: [DONE]"


@dataclass(frozen=True)
class Terminate:
    pass


@dataclass(frozen=True)
class Candidate:
    payload: str


@dataclass(frozen=True)
class Ignore:
    pass


Frame = Union[Terminate, Candidate, Ignore]

TERMINATE = Terminate()
IGNORE = Ignore()


def parse_line(line: str) -> Frame:
    """Classify one line. Total over all input, never raises."""
    if line == END_MARKER:
        return TERMINATE

    if line.startswith(DATA_PREFIX):
        payload = line[len(DATA_PREFIX):]
        if payload:
            return Candidate(payload)

    return IGNORE
