"""
Credentials management for geo-visibility-suite.
Loads from .env file by default, environment variables take precedence.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from config.settings import DEFAULT_OPENAI_MODEL, GENERATION_TIMEOUT_SECONDS

# Load .env file from project root
load_dotenv()


@dataclass
class Credentials:
    openai_api_key: str = ""
    openai_model: str = DEFAULT_OPENAI_MODEL
    request_timeout: float = GENERATION_TIMEOUT_SECONDS


def get_credentials() -> Credentials:
    """Get API credentials from environment variables / .env file."""
    try:
        timeout = float(os.getenv("OPENAI_TIMEOUT", GENERATION_TIMEOUT_SECONDS))
    except ValueError:
        timeout = GENERATION_TIMEOUT_SECONDS
    return Credentials(
        openai_api_key=os.getenv("OPENAI_API_KEY", ""),
        openai_model=os.getenv("OPENAI_MODEL", DEFAULT_OPENAI_MODEL),
        request_timeout=timeout,
    )
