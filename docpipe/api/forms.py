"""
docpipe/api/forms.py

Multipart parsing shared by the upload endpoints.

Parsing happens here, inside the route, rather than through FastAPI's
``UploadFile`` parameters: FastAPI converts any body-parsing exception into
a generic 400, which would hide an UploadTooLargeError raised by
BodySizeLimitMiddleware mid-stream.
"""

from __future__ import annotations

from typing import List

from fastapi import Request
from starlette.datastructures import UploadFile as StarletteUploadFile

from docpipe.core.constants import UPLOAD_FIELD_NAME
from docpipe.core.exceptions import MissingFileError, UploadTooLargeError, ValidationError
from docpipe.models.conversion_models import UploadedDocument


async def read_single_upload(request: Request, field: str = UPLOAD_FIELD_NAME) -> UploadedDocument:
    """
    Receive the whole multipart body and return the one file in *field*.

    Raises:
        UploadTooLargeError : The body passed the route's byte limit.
        MissingFileError    : No file was sent in *field*.
        ValidationError     : Malformed multipart body, or more than one file.
    """
    try:
        form = await request.form()
    except UploadTooLargeError:
        raise
    except Exception as exc:
        raise ValidationError("Invalid multipart/form-data payload.") from exc

    try:
        files: List[StarletteUploadFile] = [
            value for value in form.getlist(field) if isinstance(value, StarletteUploadFile)
        ]
        if not files:
            raise MissingFileError(f"'{field}' field is required.")
        if len(files) > 1:
            raise ValidationError(f"Exactly one file must be sent in '{field}'.")

        upload = files[0]
        content = await upload.read()
        return UploadedDocument(
            content=content,
            filename=upload.filename or "",
            content_type=upload.content_type or "",
        )
    finally:
        await form.close()
