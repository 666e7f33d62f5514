"""
docpipe/converter/base.py

Abstract interface for the document-conversion layer.

Services depend only on this interface, never on a concrete office suite,
so tests can substitute a stub converter.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path


class DocumentConverter(ABC):
    """Contract every spreadsheet → PDF backend must fulfil."""

    @abstractmethod
    async def convert(self, input_path: Path, output_dir: Path, timeout: float) -> Path:
        """
        Convert one input file to PDF.

        Args:
            input_path : Absolute path of the staged input file.
            output_dir : Absolute directory the PDF must be written to.
            timeout    : Hard limit in seconds for the whole conversion.

        Returns:
            Path of the produced PDF: ``output_dir / (input_path.stem + ".pdf")``.

        Raises:
            ConversionTimeout       : The conversion exceeded *timeout*.
            ConversionFailed        : The backend reported an error.
            ConversionOutputMissing : The backend reported success but wrote nothing.
        """
