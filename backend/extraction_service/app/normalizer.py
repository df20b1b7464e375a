"""Extract the JSON payload from a raw LLM completion.

Reasoning models interleave chain-of-thought before the answer, and most
models like to wrap JSON in markdown fences even when told not to. The
payload is anchored on the *last* reasoning marker and the end of the text.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

from backend.common.constants import REASONING_MARKER
from backend.common.errors import MalformedModelOutput

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NormalizedResponse:
    """Either a parsed JSON value or the reason it could not be parsed."""

    raw_text: str
    value: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def strip_reasoning(text: str, marker: str = REASONING_MARKER) -> str:
    idx = text.rfind(marker)
    if idx == -1:
        return text
    return text[idx + len(marker):]


def strip_code_fence(text: str) -> str:
    text = text.strip()
    if text.startswith("```json"):
        text = text[len("```json"):].strip()
    if text.startswith("```"):
        text = text[3:].strip()
    if text.endswith("```"):
        text = text[:-3].strip()
    return text


def normalize_response(raw_text: Optional[str]) -> NormalizedResponse:
    """Parse a completion into JSON without raising."""
    raw_text = raw_text or ""
    payload = strip_code_fence(strip_reasoning(raw_text))

    if not payload:
        return NormalizedResponse(raw_text=raw_text, error="No content found in response")

    try:
        value = json.loads(payload)
    except json.JSONDecodeError as e:
        return NormalizedResponse(
            raw_text=raw_text,
            error=f"Failed to parse valid JSON from response content: {e}",
        )
    return NormalizedResponse(raw_text=raw_text, value=value)


def parse_model_output(raw_text: Optional[str]) -> Any:
    """Like :func:`normalize_response` but raises ``MalformedModelOutput``."""
    result = normalize_response(raw_text)
    if not result.ok:
        logger.error("Failed to parse model output: %s", result.error)
        logger.error("Response text: %s", result.raw_text)
        raise MalformedModelOutput(result.error, raw_text=result.raw_text)
    return result.value
