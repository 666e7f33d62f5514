"""docpipe/converter/__init__.py — public API of the converter package."""

from docpipe.converter.base import DocumentConverter
from docpipe.converter.libreoffice_converter import LibreOfficeConverter
from docpipe.converter.pdf_inspector import PDFInspector

__all__ = [
    "DocumentConverter",
    "LibreOfficeConverter",
    "PDFInspector",
]
