"""docpipe/scratch/__init__.py — public API of the scratch package."""

from docpipe.scratch.base import ScratchFile, ScratchKind
from docpipe.scratch.store import ScratchSession, ScratchStore

__all__ = [
    "ScratchFile",
    "ScratchKind",
    "ScratchSession",
    "ScratchStore",
]
