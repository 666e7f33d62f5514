"""
docpipe/converter/pdf_inspector.py

Sanity-checks converter output using PyMuPDF (fitz).

An office suite can exit 0 and still write a truncated or empty file;
opening the bytes before they are sent to the client catches that.
"""

from __future__ import annotations

import fitz  # PyMuPDF

from docpipe.core.constants import PDF_MAGIC
from docpipe.core.exceptions import ConversionOutputInvalid
from docpipe.core.logger import get_logger

logger = get_logger(__name__)


class PDFInspector:
    """
    Validates PDF bytes in memory and reports the page count.

    No temporary files are created.
    """

    def page_count(self, pdf_bytes: bytes, label: str = "output.pdf") -> int:
        """
        Return the number of pages in a PDF.

        Args:
            pdf_bytes : Raw bytes produced by the converter.
            label     : Name used only for logging and error messages.

        Raises:
            ConversionOutputInvalid: The bytes are empty, lack the PDF
                                     header, cannot be opened, or have
                                     no pages.
        """
        if not pdf_bytes:
            raise ConversionOutputInvalid(f"'{label}' is empty.")
        if not pdf_bytes.startswith(PDF_MAGIC):
            raise ConversionOutputInvalid(f"'{label}' does not start with a PDF header.")

        try:
            doc = fitz.open(stream=pdf_bytes, filetype="pdf")
        except Exception as exc:
            raise ConversionOutputInvalid(
                f"'{label}' could not be opened as a PDF: {exc}"
            ) from exc

        try:
            pages = len(doc)
        finally:
            doc.close()

        if pages < 1:
            raise ConversionOutputInvalid(f"'{label}' has no pages.")

        logger.debug("'%s' — %d page(s).", label, pages)
        return pages
