"""
gptstream - Main Entry Point

Streams chat completions from an OpenAI-compatible endpoint, either
straight to the terminal or through a local SSE relay.

Usage:
    python -m gptstream.main ask "Tell me a joke" [--system "..."] [--model gpt-4o]
    python -m gptstream.main curl "Tell me a joke" [--compact]
    python -m gptstream.main serve

Environment Variables:
    OPENAI_API_KEY            - API key sent as a bearer token
    OPENAI_BASE_URL           - Endpoint base URL (default: https://api.openai.com)
    OPENAI_MODEL              - Default model (default: gpt-4o-mini)
    OPENAI_ORG                - Optional organization header
    GPTSTREAM_TIMEOUT         - Read timeout in seconds (default: 300)
    GPTSTREAM_CONNECT_TIMEOUT - Connect timeout in seconds (default: 10)
    GPTSTREAM_HOST            - Relay host (default: 0.0.0.0)
    GPTSTREAM_PORT            - Relay port (default: 8000)
    LOG_LEVEL / DEBUG         - Logging verbosity
"""

import argparse
import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from typing import List, Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import router as api_router
from .client import ChatStreamClient
from .config import config
from .errors import StreamError
from .models import ChatRequest, ModelChoice, conversation

logger = logging.getLogger(__name__)


def configure_logging(level: Optional[int] = None, stream=sys.stdout):
    logging.basicConfig(
        level=level if level is not None else config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(stream)],
    )


def create_app(client: Optional[ChatStreamClient] = None) -> FastAPI:
    """
    Build the relay app.

    An injected client is used as-is and left open on shutdown; otherwise
    one is created from config for the app's lifetime.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = app.state.client is None
        if owned:
            app.state.client = ChatStreamClient()

        logger.info("=" * 60)
        logger.info("gptstream relay starting")
        logger.info(f"Upstream: {app.state.client.builder.completions_url}")
        logger.info(f"Default model: {app.state.client.default_model}")
        logger.info(f"Relay endpoint: http://{config.host}:{config.port}/v1/chat/completions")
        logger.info("=" * 60)

        yield

        logger.info("Shutting down...")
        if owned:
            await app.state.client.aclose()
            app.state.client = None
        logger.info("Shutdown complete")

    app = FastAPI(
        title="gptstream relay",
        description="Relays streamed chat completions as decoded SSE fragments.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.client = client

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        active = app.state.client
        if active is None:
            return {"status": "healthy", "upstream": config.completions_url, "model": config.default_model}
        return {
            "status": "healthy",
            "upstream": active.builder.completions_url,
            "model": active.default_model,
        }

    return app


async def _ask(prompt: str, system_prompt: Optional[str], model: ModelChoice) -> int:
    async with ChatStreamClient() as client:
        try:
            stream = await client.ask(prompt, system_prompt=system_prompt, model=model)
            async with stream:
                async for fragment in stream:
                    print(fragment, end="", flush=True)
        except StreamError as e:
            print(f"\nError: {e}", file=sys.stderr)
            return 1
    print()
    return 0


async def _curl(prompt: str, system_prompt: Optional[str], model: ModelChoice, pretty: bool) -> str:
    async with ChatStreamClient() as client:
        request = ChatRequest.streamed(
            model=model.resolve(client.default_model),
            messages=conversation(prompt, system_prompt),
        )
        return client.curl(request, pretty=pretty)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gptstream", description="Stream chat completions")
    sub = parser.add_subparsers(dest="command", required=True)

    ask = sub.add_parser("ask", help="Stream the answer to a prompt")
    ask.add_argument("prompt")
    ask.add_argument("--system", help="System prompt sent before the user prompt")
    ask.add_argument("--model", help="Model to use instead of the configured default")

    curl = sub.add_parser("curl", help="Print the equivalent curl command")
    curl.add_argument("prompt")
    curl.add_argument("--system", help="System prompt sent before the user prompt")
    curl.add_argument("--model", help="Model to use instead of the configured default")
    curl.add_argument("--compact", action="store_true", help="Print on a single line")

    sub.add_parser("serve", help="Run the SSE relay")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.command == "serve":
        configure_logging()
        uvicorn.run(
            "gptstream.main:app",
            host=config.host,
            port=config.port,
            reload=False,
            log_level="info",
        )
        return 0

    # stdout carries the answer
    configure_logging(stream=sys.stderr)
    model = ModelChoice.specific(args.model) if args.model else ModelChoice.default()

    if args.command == "ask":
        return asyncio.run(_ask(args.prompt, args.system, model))

    print(asyncio.run(_curl(args.prompt, args.system, model, pretty=not args.compact)))
    return 0


app = create_app()


if __name__ == "__main__":
    sys.exit(main())
