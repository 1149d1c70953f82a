"""Remote language-model structuring of OCR text.

Sends normalized text to an OpenAI-compatible chat-completions endpoint
and decodes the reply as key-value JSON. A reply that is not valid JSON
is kept verbatim as a ``raw`` result instead of failing the pipeline.
"""

import json
import re
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

import httpx
from openai import OpenAI, OpenAIError

from ocr_parser.utils.config import StructuringConfig
from ocr_parser.utils.errors import StructuringError
from ocr_parser.utils.logger import get_logger

logger = get_logger(__name__)

PROMPT_TEMPLATE = (
    "Give me a cleaned version of the following text and return in proper JSON "
    "format only. Do not include any extra text or symbols. Extract key-value "
    "pairs from the content:\n\n{text}"
)

_OPENING_FENCE = re.compile(r"\A\s*```(?:json)?")
_CLOSING_FENCE = re.compile(r"```\s*\Z")


class StructuredKind(StrEnum):
    """How a structuring response was interpreted."""

    PARSED = "parsed"
    RAW = "raw"


@dataclass(frozen=True)
class StructuredOutput:
    """Tagged structuring result.

    ``value`` is the decoded JSON for ``parsed`` results and the
    fence-stripped response text for ``raw`` results.
    """

    kind: StructuredKind
    value: Any

    @classmethod
    def parsed(cls, value: Any) -> "StructuredOutput":
        return cls(kind=StructuredKind.PARSED, value=value)

    @classmethod
    def raw(cls, text: str) -> "StructuredOutput":
        return cls(kind=StructuredKind.RAW, value=text)

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "value": self.value}


def strip_code_fences(text: str) -> str:
    """Remove the Markdown fence wrapping a model reply.

    Only a leading ```json (or ```) and a trailing ``` are removed; backticks
    inside the reply body are kept.
    """
    return _CLOSING_FENCE.sub("", _OPENING_FENCE.sub("", text, count=1), count=1)


def parse_structured_response(response_text: str) -> StructuredOutput:
    """Decode a model reply, falling back to the raw text.

    Args:
        response_text: Reply text, possibly wrapped in a code fence.

    Returns:
        A ``parsed`` result when the fence-stripped text is valid JSON,
        otherwise a ``raw`` result holding that text unchanged.
    """
    cleaned = strip_code_fences(response_text)
    try:
        return StructuredOutput.parsed(json.loads(cleaned))
    except json.JSONDecodeError as exc:
        logger.warning("JSON parsing failed, keeping raw response: %s", exc)
        return StructuredOutput.raw(cleaned)


class LLMStructurer:
    """Client for reshaping OCR text into key-value JSON.

    Args:
        client: OpenAI-compatible client.
        model: Model name passed to the chat-completions API.
    """

    def __init__(self, client: OpenAI, model: str) -> None:
        self.client = client
        self.model = model

    @classmethod
    def from_config(cls, config: StructuringConfig) -> "LLMStructurer | None":
        """Build a structurer, or ``None`` when structuring is off or unconfigured.

        The API key is read from the environment variable named in
        ``config.api_key_env``.
        """
        if not config.enabled:
            logger.info("Remote structuring disabled by configuration")
            return None

        api_key = config.api_key()
        if api_key is None:
            logger.warning(
                "Remote structuring skipped: environment variable %s is not set",
                config.api_key_env,
            )
            return None

        client = OpenAI(
            api_key=api_key,
            base_url=config.base_url,
            timeout=httpx.Timeout(config.timeout_s, connect=10.0),
            max_retries=0,
        )
        return cls(client, config.model)

    def build_prompt(self, text: str) -> str:
        return PROMPT_TEMPLATE.format(text=text)

    def structure(self, text: str) -> StructuredOutput:
        """Ask the model to structure ``text`` and decode its reply.

        Args:
            text: Normalized OCR text.

        Returns:
            Parsed JSON, or the raw reply when it is not valid JSON.

        Raises:
            StructuringError: If the service call fails.
        """
        logger.info("Requesting structuring from %s (%d chars)", self.model, len(text))
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": self.build_prompt(text)}],
            )
        except OpenAIError as exc:
            raise StructuringError(f"Structuring request failed: {exc}") from exc

        if not response.choices:
            raise StructuringError("Structuring response contained no choices")
        content = response.choices[0].message.content or ""
        logger.debug("Structuring response: %s", content)
        return parse_structured_response(content)
