import json
import logging
import re
from typing import Any

from openai import AsyncOpenAI

from sitegen.core.config import settings

logger = logging.getLogger(__name__)

_LEADING_FENCE = re.compile(r"^\s*```[a-zA-Z0-9_-]*[ \t]*\r?\n?")
_TRAILING_FENCE = re.compile(r"\r?\n?[ \t]*```\s*$")


def strip_code_fences(text: str) -> str:
    """Remove a leading ```lang and a trailing ``` delimiter, independently of each other."""
    if not text:
        return ""
    cleaned = _LEADING_FENCE.sub("", text, count=1)
    cleaned = _TRAILING_FENCE.sub("", cleaned, count=1)
    return cleaned.strip()


def _extract_fenced_block(text: str) -> str | None:
    blocks = re.findall(r"```(?:json)?\s*(.*?)\s*```", text, re.DOTALL | re.IGNORECASE)
    return blocks[0].strip() if blocks else None


def _extract_balanced_object(text: str) -> str | None:
    """Best-effort extraction of the first balanced top-level JSON object."""
    start_idx = text.find("{")
    if start_idx == -1:
        return None

    depth = 0
    in_string = False
    escape = False
    for i in range(start_idx, len(text)):
        ch = text[i]
        if in_string:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start_idx:i + 1]
    return None


def json_object_candidates(raw_text: str) -> list[str]:
    text = (raw_text or "").strip()
    if not text:
        return []

    candidates = [_extract_fenced_block(text), strip_code_fences(text), text]
    balanced = _extract_balanced_object(text)
    if balanced:
        candidates.append(balanced)

    # Keep order, drop empties and repeats.
    return list(dict.fromkeys(c.strip() for c in candidates if c and c.strip()))


def parse_json_object(raw_text: str) -> dict[str, Any] | None:
    """Return the first candidate that decodes to a JSON object, or None."""
    for candidate in json_object_candidates(raw_text):
        try:
            parsed = json.loads(candidate, strict=False)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed
    return None


class LLMClient:
    """Thin text-generation client over any OpenAI-compatible chat completions endpoint."""

    def __init__(
        self,
        model_name: str | None = None,
        base_url: str | None = None,
        api_key: str | None = None,
    ):
        self.model_name = model_name or settings.MODEL_DEFAULT
        self.client = AsyncOpenAI(
            base_url=base_url or settings.LLM_BASE_URL or None,
            api_key=api_key or settings.llm_api_key,
        )

    def _chat_completion_kwargs(self, *, temperature: float | None) -> dict:
        model_name = (self.model_name or "").lower()
        # GPT-5 family rejects non-default temperature values.
        if model_name.startswith("gpt-5") or temperature is None:
            return {}
        return {"temperature": temperature}

    async def generate_text(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        temperature: float | None = None,
    ) -> str:
        """
        Send one prompt and return the raw text of the first choice.
        A single attempt; provider errors propagate to the caller.
        """
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        logger.info("Issuing text request to model %s (%s prompt chars)", self.model_name, len(prompt))
        response = await self.client.chat.completions.create(
            model=self.model_name,
            messages=messages,
            **self._chat_completion_kwargs(
                temperature=settings.LLM_TEMPERATURE if temperature is None else temperature
            ),
        )

        if not getattr(response, "choices", None):
            logger.error("Received no choices from %s: %s", self.model_name, response)
            raise ValueError(f"Provider {self.model_name} returned no output")

        text_response = response.choices[0].message.content or ""
        if not text_response.strip():
            raise ValueError(f"Provider {self.model_name} returned empty content")
        logger.info("Received %s chars from %s", len(text_response), self.model_name)
        return text_response
