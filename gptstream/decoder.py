"""Decoding of `data: ` payloads into content fragments."""

from dataclasses import dataclass
from typing import Union

from pydantic import ValidationError

from .models import StreamedChunk


@dataclass(frozen=True)
class Fragment:
    text: str


@dataclass(frozen=True)
class Empty:
    pass


@dataclass(frozen=True)
class DecodeFailed:
    payload: str
    cause: Exception


DecodeResult = Union[Fragment, Empty, DecodeFailed]

EMPTY = Empty()


def decode_payload(payload: str) -> DecodeResult:
    """
    Decode one chunk payload and extract its text.

    Only the first choice's delta content counts. Chunks without content
    (role announcements, finish reasons, empty choice lists) are Empty.
    Invalid JSON or an unexpected shape is returned as DecodeFailed rather
    than raised, so one bad line cannot end the stream.
    """
    try:
        chunk = StreamedChunk.model_validate_json(payload)
    except ValidationError as e:
        return DecodeFailed(payload=payload, cause=e)

    if not chunk.choices:
        return EMPTY

    content = chunk.choices[0].delta.content
    if not content:
        return EMPTY

    return Fragment(content)
