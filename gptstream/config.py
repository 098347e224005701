"""Client configuration."""

import logging
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

from .request_builder import COMPLETIONS_PATH

load_dotenv()


def _log_level() -> int:
    if os.getenv("DEBUG"):
        return logging.DEBUG
    return getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)


@dataclass
class Config:
    """Configuration loaded from environment variables."""

    # Upstream endpoint
    api_key: str = field(default_factory=lambda: os.getenv("OPENAI_API_KEY", ""))
    base_url: str = field(default_factory=lambda: os.getenv("OPENAI_BASE_URL", "https://api.openai.com"))
    default_model: str = field(default_factory=lambda: os.getenv("OPENAI_MODEL", "gpt-4o-mini"))
    organization: Optional[str] = field(default_factory=lambda: os.getenv("OPENAI_ORG") or None)

    # Transport
    timeout: float = field(default_factory=lambda: float(os.getenv("GPTSTREAM_TIMEOUT", "300")))
    connect_timeout: float = field(default_factory=lambda: float(os.getenv("GPTSTREAM_CONNECT_TIMEOUT", "10")))

    # Relay server
    host: str = field(default_factory=lambda: os.getenv("GPTSTREAM_HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("GPTSTREAM_PORT", "8000")))

    log_level: int = field(default_factory=_log_level)

    @property
    def completions_url(self) -> str:
        """Full URL of the chat completion endpoint."""
        return f"{self.base_url.rstrip('/')}{COMPLETIONS_PATH}"


# Global config instance
config = Config()
