"""
docpipe/models/conversion_models.py

Request-scoped value objects for the conversion flow.

The HTTP response is the PDF itself, so there is no response DTO; errors
use the shared ErrorResponse shape.
"""

from dataclasses import dataclass

from pydantic import BaseModel


@dataclass(frozen=True)
class UploadedDocument:
    """
    An inbound file, fully received.

    Attributes:
        content      : Raw bytes of the upload.
        filename     : Filename as declared by the client. Untrusted — only
                       ever used, sanitised, to name downloads and objects.
        content_type : MIME type as declared by the client (may be empty).
    """

    content: bytes
    filename: str
    content_type: str = ""

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class ConversionResult:
    """A successfully converted PDF, ready to be returned to the client."""

    pdf: bytes
    page_count: int
    download_name: str


class ErrorResponse(BaseModel):
    """
    Error body shared by every endpoint:

        { "error": "Conversion failed." }
    """

    error: str
