"""
Text-generation capability used by the rewrite detectors.

The core only depends on something with a ``generate(prompt) -> str`` method.
Provider selection and retries belong to the implementation (see
``core/openai_client.py``); this module owns the failure types, the timeout
bound, and validation of the original/improved contract.
"""
import json
import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Optional, Protocol, Tuple

from config.settings import GENERATION_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


class TextGenerationError(Exception):
    """Base class for every recoverable text-generation failure."""


class GenerationTimeoutError(TextGenerationError):
    pass


class ProviderError(TextGenerationError):
    pass


class MalformedOutputError(TextGenerationError):
    pass


class TextGenerator(Protocol):
    def generate(self, prompt: str) -> str:
        ...


def generate_with_timeout(
    generator: TextGenerator,
    prompt: str,
    timeout: float = GENERATION_TIMEOUT_SECONDS,
) -> str:
    """Call *generator* in a worker thread and give up after *timeout* seconds.

    Any failure is re-raised as a :class:`TextGenerationError` subclass.
    """
    pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="textgen")
    future = pool.submit(generator.generate, prompt)
    try:
        result = future.result(timeout=timeout)
    except FutureTimeout as e:
        future.cancel()
        raise GenerationTimeoutError(f"text generation exceeded {timeout:.1f}s") from e
    except TextGenerationError:
        raise
    except Exception as e:
        raise ProviderError(str(e)) from e
    finally:
        pool.shutdown(wait=False, cancel_futures=True)

    if not isinstance(result, str) or not result.strip():
        raise MalformedOutputError("empty response")
    return result


def parse_rewrite(raw: str, bounds: Tuple[int, int]) -> Tuple[str, str]:
    """Validate an ``{"original": ..., "improved": ...}`` response.

    Both fields must be non-empty strings whose lengths fall inside *bounds*.
    """
    data = _parse_json(raw)
    if not isinstance(data, dict):
        raise MalformedOutputError("response is not a JSON object")
    original, improved = data.get("original"), data.get("improved")
    lo, hi = bounds
    for name, value in (("original", original), ("improved", improved)):
        if not isinstance(value, str) or not value.strip():
            raise MalformedOutputError(f"missing '{name}' field")
        if not lo <= len(value.strip()) <= hi:
            raise MalformedOutputError(f"'{name}' length {len(value.strip())} outside {lo}-{hi}")
    return original.strip(), improved.strip()


def _parse_json(raw: str) -> Optional[dict]:
    raw = (raw or "").strip()
    if raw.startswith("```"):
        raw = raw.split("\n", 1)[-1].rsplit("```", 1)[0].strip()
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        start, end = raw.find("{"), raw.rfind("}") + 1
        if start >= 0 and end > start:
            try:
                return json.loads(raw[start:end])
            except json.JSONDecodeError:
                logger.debug("unparseable generation output: %s", raw[:200])
    return None
