"""Error taxonomy for streamed completions."""

from typing import Optional

import httpx


class StreamError(Exception):
    """Base exception for all streaming client errors."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class ResponseParsingFailed(StreamError):
    """The response was not a well-formed HTTP response, or its body failed mid-read."""

    def __init__(self, message: str = "Failed to parse the response", cause: Optional[BaseException] = None):
        super().__init__(message, cause)


class RequestFailed(StreamError):
    """The endpoint answered with a status outside 200-299."""

    def __init__(self, message: str, status_code: Optional[int] = None, cause: Optional[BaseException] = None):
        super().__init__(message, cause)
        self.status_code = status_code

    @classmethod
    def for_status(cls, status_code: int) -> "RequestFailed":
        return cls(
            f"Response status code was unacceptable: {status_code}",
            status_code=status_code,
        )


def translate_error(error: BaseException) -> StreamError:
    """Map any error raised while setting up an exchange onto the taxonomy."""
    if isinstance(error, StreamError):
        return error
    if isinstance(error, httpx.HTTPError):
        return ResponseParsingFailed(f"Transport error: {error}", cause=error)
    return StreamError(f"Unexpected error: {error}", cause=error)
