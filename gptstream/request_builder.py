"""Outbound request construction, auth headers and curl rendering."""

import shlex
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from .models import ChatRequest

COMPLETIONS_PATH = "/v1/chat/completions"

# Headers httpx adds on its own; left out of curl output
_CURL_SKIPPED_HEADERS = {
    "host",
    "accept",
    "accept-encoding",
    "connection",
    "content-length",
    "user-agent",
}


@dataclass
class RequestDescriptor:
    """Method, path and body of an outbound call, before it is bound to a host."""
    method: str
    path: str
    body: Dict[str, Any]


def describe(chat_request: ChatRequest) -> RequestDescriptor:
    return RequestDescriptor(method="POST", path=COMPLETIONS_PATH, body=chat_request.to_wire())


def attach_auth_headers(
    request: httpx.Request,
    api_key: str,
    organization: Optional[str] = None,
) -> httpx.Request:
    """Add bearer auth (and the organization header, if any) to a request."""
    request.headers["Authorization"] = f"Bearer {api_key}"
    if organization:
        request.headers["OpenAI-Organization"] = organization
    return request


class RequestBuilder:
    """Turns chat requests into ready-to-send `httpx.Request` objects."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        api_key: str,
        organization: Optional[str] = None,
    ):
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.organization = organization

    @property
    def completions_url(self) -> str:
        return f"{self.base_url}{COMPLETIONS_PATH}"

    def build(self, chat_request: ChatRequest) -> httpx.Request:
        descriptor = describe(chat_request)
        request = self.client.build_request(
            descriptor.method,
            self.completions_url,
            json=descriptor.body,
        )
        return attach_auth_headers(request, self.api_key, self.organization)


def to_curl(request: httpx.Request, pretty: bool = True) -> str:
    """
    Render a request as a curl command that can be pasted into a terminal.

    With `pretty`, every option goes on its own continuation line.
    """
    parts: List[str] = [
        "curl",
        f"--request {request.method}",
        f"--url {shlex.quote(str(request.url))}",
    ]

    # raw keeps the original header casing
    for raw_name, raw_value in request.headers.raw:
        name = raw_name.decode("latin-1")
        if name.lower() in _CURL_SKIPPED_HEADERS:
            continue
        value = raw_value.decode("latin-1")
        parts.append(f"--header {shlex.quote(f'{name}: {value}')}")

    body = request.content
    if body:
        parts.append(f"--data {shlex.quote(body.decode('utf-8'))}")

    if pretty:
        return " \\\n  ".join(parts)
    return " ".join(parts)
