"""
docpipe/services/priority_service.py

Suggests a priority for a task through the configured Prioritizer.
Same constructor-injection pattern as the other services.
"""

from __future__ import annotations

from docpipe.core.logger import get_logger
from docpipe.models.priority_models import PriorityRequest, PriorityResponse
from docpipe.prioritizer.base import Prioritizer
from docpipe.prioritizer.openai_prioritizer import OpenAIPrioritizer

logger = get_logger(__name__)


class PriorityService:
    def __init__(self, prioritizer: Prioritizer | None = None) -> None:
        self._prioritizer: Prioritizer = prioritizer or OpenAIPrioritizer()

    async def suggest(self, request: PriorityRequest) -> PriorityResponse:
        """
        Raises:
            PrioritizerNotConfiguredError : No LLM credentials.
            PrioritySuggestionError       : The LLM failed or answered badly.
        """
        priority = await self._prioritizer.suggest(request.title, request.description)
        logger.info("Suggested priority '%s' for task '%s'.", priority, request.title[:80])
        return PriorityResponse(priority=priority)


# ── Module-level singleton ─────────────────────────────────────────────────────

priority_service = PriorityService()


def get_priority_service() -> PriorityService:
    return priority_service
