"""
docpipe/prioritizer/openai_prioritizer.py

OpenAI implementation of the Prioritizer interface.

The SDK client is created lazily on first use so application startup does
not require an API key.
"""

from __future__ import annotations

import json
from typing import Optional

from docpipe.core.config import settings
from docpipe.core.constants import PRIORITY_LEVELS
from docpipe.core.exceptions import PrioritizerNotConfiguredError, PrioritySuggestionError
from docpipe.core.logger import get_logger
from docpipe.prioritizer.base import Prioritizer
from docpipe.prioritizer.prompts import SYSTEM_PROMPT, build_user_prompt

logger = get_logger(__name__)


class OpenAIPrioritizer(Prioritizer):
    """
    Asks an OpenAI chat model for a Low / Medium / High priority.

    The model is instructed to answer with a JSON object and the request
    uses ``response_format={"type": "json_object"}``; anything that does not
    parse to one of the three levels is treated as a failure.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self._api_key: Optional[str] = api_key or settings.openai_api_key
        self._model: str = model or settings.priority_model
        self._timeout: float = timeout if timeout is not None else settings.priority_timeout_seconds
        self._client = None  # openai.AsyncOpenAI, created on first use

    def _get_client(self):
        if self._client is None:
            if not self._api_key:
                raise PrioritizerNotConfiguredError("OPENAI_API_KEY is not configured.")
            import openai

            self._client = openai.AsyncOpenAI(api_key=self._api_key, timeout=self._timeout)
        return self._client

    async def suggest(self, title: str, description: str) -> str:
        client = self._get_client()
        try:
            completion = await client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": build_user_prompt(title, description)},
                ],
                response_format={"type": "json_object"},
                temperature=0,
            )
        except Exception as exc:
            raise PrioritySuggestionError(f"Priority request failed: {exc}") from exc

        raw = completion.choices[0].message.content or ""
        return parse_priority(raw)


def parse_priority(raw: str) -> str:
    """
    Extract the priority level from the model's JSON answer.

        parse_priority('{"priority": "high"}') -> "High"

    Raises:
        PrioritySuggestionError: Not JSON, no "priority" key, or an unknown level.
    """
    try:
        payload = json.loads(raw)
    except ValueError as exc:
        raise PrioritySuggestionError(f"Model answer is not JSON: {raw[:120]!r}") from exc

    value = payload.get("priority") if isinstance(payload, dict) else None
    if not isinstance(value, str):
        raise PrioritySuggestionError(f"Model answer has no priority: {raw[:120]!r}")

    for level in PRIORITY_LEVELS:
        if value.strip().lower() == level.lower():
            return level
    raise PrioritySuggestionError(f"Unknown priority level {value!r}.")
