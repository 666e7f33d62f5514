"""docpipe/prioritizer/__init__.py — public API of the prioritizer package."""

from docpipe.prioritizer.base import Prioritizer
from docpipe.prioritizer.openai_prioritizer import OpenAIPrioritizer, parse_priority

__all__ = [
    "Prioritizer",
    "OpenAIPrioritizer",
    "parse_priority",
]
