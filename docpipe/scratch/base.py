"""
docpipe/scratch/base.py

Shared vocabulary for request-scoped scratch files.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class ScratchKind(str, Enum):
    """Role a scratch file plays in one conversion request."""

    INPUT = "input"
    OUTPUT = "output"


@dataclass(frozen=True)
class ScratchFile:
    """
    A file on local disk owned by exactly one request.

    Attributes:
        path : Absolute location under the scratch directory. Always
               generated by the store, never derived from client input.
        kind : Whether the file feeds the converter or comes out of it.
    """

    path: Path
    kind: ScratchKind

    @property
    def token(self) -> str:
        """The unique base name shared by a request's input and output files."""
        return self.path.stem
