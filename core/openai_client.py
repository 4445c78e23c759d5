"""
OpenAI-backed text generator for the rewrite detectors.
Transient failures (timeouts, dropped connections, rate limits) are retried
with exponential backoff; any other API error ends the attempt at once.
"""

import logging
import time
from typing import Any, Dict, List, Optional

import httpx
from openai import APIConnectionError, APIStatusError, OpenAI, RateLimitError

from core.credentials import get_credentials
from core.text_generation import ProviderError

logger = logging.getLogger(__name__)

REWRITE_SYSTEM_PROMPT = (
    "You are an expert editor improving web content for search engines and AI answer engines. "
    "Always respond with valid JSON only."
)

# APITimeoutError subclasses APIConnectionError
_RETRYABLE = (APIConnectionError, RateLimitError)


class OpenAIClient:
    """Chat-completions client exposing ``generate(prompt) -> str``."""

    def __init__(self, model: Optional[str] = None, max_retries: int = 2, timeout: Optional[float] = None):
        creds = get_credentials()
        self.api_key = creds.openai_api_key
        self.model = model or creds.openai_model
        self.max_retries = max_retries
        self.timeout = timeout or creds.request_timeout
        self._client: Optional[OpenAI] = None

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            self._client = OpenAI(
                api_key=self.api_key,
                max_retries=0,
                http_client=httpx.Client(timeout=self.timeout),
            )
        return self._client

    @staticmethod
    def _messages(system_prompt: str, user_prompt: str) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]

    def chat(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 1200,
        json_mode: bool = False,
    ) -> Optional[str]:
        """One completion, or None once retries are exhausted or the API refuses."""
        request: Dict[str, Any] = {
            "model": self.model,
            "messages": self._messages(system_prompt, user_prompt),
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if json_mode:
            request["response_format"] = {"type": "json_object"}

        delay = 1.0
        for attempt in range(1, self.max_retries + 2):
            try:
                response = self.client.chat.completions.create(**request)
            except _RETRYABLE as e:
                logger.warning(f"OpenAI transient error ({attempt}/{self.max_retries + 1}): {e}")
                if attempt <= self.max_retries:
                    time.sleep(delay)
                    delay *= 2
                continue
            except APIStatusError as e:
                logger.error(f"OpenAI rejected request ({e.status_code}): {e}")
                return None
            choices = response.choices or []
            content = choices[0].message.content if choices else None
            return content.strip() if content else None
        return None

    def generate(self, prompt: str) -> str:
        if not self.api_key:
            raise ProviderError("OPENAI_API_KEY is not configured")
        raw = self.chat(REWRITE_SYSTEM_PROMPT, prompt, json_mode=True)
        if raw is None:
            raise ProviderError(f"no completion from {self.model}")
        return raw
