"""
tests/services/test_priority_service.py

Unit tests for PriorityService with the Prioritizer mocked.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from docpipe.core.exceptions import PrioritySuggestionError
from docpipe.models.priority_models import PriorityRequest, PriorityResponse
from docpipe.services.priority_service import PriorityService


def _make_service(answer: str = "High") -> PriorityService:
    prioritizer = MagicMock()
    prioritizer.suggest = AsyncMock(return_value=answer)
    return PriorityService(prioritizer=prioritizer)


class TestSuggest:

    @pytest.mark.asyncio
    async def test_returns_priority_response(self) -> None:
        service = _make_service("Medium")

        result = await service.suggest(PriorityRequest(title="Order PPE", description="Gloves running low"))

        assert isinstance(result, PriorityResponse)
        assert result.priority == "Medium"

    @pytest.mark.asyncio
    async def test_passes_title_and_description(self) -> None:
        service = _make_service()

        await service.suggest(PriorityRequest(title="  Fix crane brake  ", description="Fails inspection"))

        service._prioritizer.suggest.assert_awaited_once_with("Fix crane brake", "Fails inspection")

    @pytest.mark.asyncio
    async def test_backend_error_propagates(self) -> None:
        service = _make_service()
        service._prioritizer.suggest.side_effect = PrioritySuggestionError("bad answer")

        with pytest.raises(PrioritySuggestionError):
            await service.suggest(PriorityRequest(title="x"))
