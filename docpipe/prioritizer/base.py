"""
docpipe/prioritizer/base.py

Abstract interface for task-priority suggestion.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class Prioritizer(ABC):
    """Contract every priority-suggestion backend must fulfil."""

    @abstractmethod
    async def suggest(self, title: str, description: str) -> str:
        """
        Suggest a priority for a task.

        Args:
            title       : Short task title.
            description : Free-text task description (may be empty).

        Returns:
            One of ``"Low"``, ``"Medium"``, ``"High"``.

        Raises:
            PrioritizerNotConfiguredError : No backend credentials.
            PrioritySuggestionError       : The backend failed or answered
                                            with something unusable.
        """
