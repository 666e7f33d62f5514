"""
docpipe/api/convert_controller.py

Handles incoming requests to POST /convert.

This layer is responsible only for HTTP concerns:
  - Parsing the multipart form and requiring exactly one 'file' upload.
  - Validating that the upload is an Excel workbook.
  - Delegating the conversion to ConversionService.
  - Translating service-level errors into generic HTTP responses while
    logging the detailed cause server-side.

Responses:
  200  The PDF, as an attachment named after the uploaded workbook.
  400  The request was rejected before processing began: the 'file'
       field was missing, empty, duplicated, or not an .xlsx workbook.
  413  The body exceeded MAX_UPLOAD_BYTES.
  500  Staging, conversion or reading the result failed.  The body never
       carries paths, exit codes or converter output.
"""

from pathlib import PurePosixPath

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response

from docpipe.api.forms import read_single_upload
from docpipe.core.constants import (
    ALLOWED_SPREADSHEET_CONTENT_TYPES,
    ALLOWED_SPREADSHEET_EXTENSION,
    PDF_CONTENT_TYPE,
)
from docpipe.core.exceptions import (
    ConversionError,
    ConversionFailed,
    ConversionTimeout,
    ScratchError,
    UploadTooLargeError,
    ValidationError,
)
from docpipe.core.logger import get_logger
from docpipe.models.conversion_models import ErrorResponse, UploadedDocument
from docpipe.services.conversion_service import ConversionService, get_conversion_service

logger = get_logger(__name__)

router = APIRouter(prefix="/convert", tags=["Convert"])

# ── Helpers ────────────────────────────────────────────────────────────────────

def _is_valid_spreadsheet(document: UploadedDocument) -> bool:
    """
    Return True when the upload passes the workbook guard.

    Rule: declared filename extension MUST be .xlsx (case-insensitive).
          If the client also supplies a content-type it must be one of the
          accepted spreadsheet types.
    """
    extension_ok = PurePosixPath(document.filename).suffix.lower() == ALLOWED_SPREADSHEET_EXTENSION
    if not extension_ok:
        return False
    content_type = document.content_type.split(";")[0].strip().lower()
    if content_type and content_type not in ALLOWED_SPREADSHEET_CONTENT_TYPES:
        return False
    return True


def _err(message: str, status: int = 400) -> JSONResponse:
    """Return a JSON error response with the standard error shape."""
    return JSONResponse(status_code=status, content={"error": message})


# ── Endpoint ───────────────────────────────────────────────────────────────────

@router.post(
    "",
    summary="Convert an Excel workbook to PDF",
    response_class=Response,
    responses={
        200: {"content": {PDF_CONTENT_TYPE: {}}, "description": "The converted PDF."},
        400: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def convert(
    request: Request,
    service: ConversionService = Depends(get_conversion_service),
) -> Response:
    """
    Accepts a single workbook upload:

        curl -F "file=@TP_Certification_List.xlsx" http://host/convert -o out.pdf
    """
    # ── 1. Receive and validate the upload ─────────────────────────────────────
    try:
        document = await read_single_upload(request)
    except UploadTooLargeError as exc:
        return _err(f"File too large (max {exc.limit} bytes).", status=413)
    except ValidationError as exc:
        return _err(str(exc))

    if not _is_valid_spreadsheet(document):
        return _err("Only .xlsx workbooks can be converted.")
    if not document.content:
        return _err("Uploaded file is empty.")

    logger.info("Convert request received — %d byte(s).", document.size)

    # ── 2. Delegate to service ─────────────────────────────────────────────────
    try:
        result = await service.convert(document)

    except ConversionTimeout as exc:
        logger.error("Conversion timed out: %s", exc)
        return _err("Conversion timed out.", status=500)

    except ConversionFailed as exc:
        logger.error(
            "Conversion failed (exit code %s): %s | stderr: %s",
            exc.exit_code,
            exc,
            exc.stderr_excerpt or "<empty>",
        )
        return _err("Conversion failed.", status=500)

    except ConversionError as exc:
        logger.error("Conversion produced no usable PDF: %s", exc)
        return _err("Conversion failed.", status=500)

    except ScratchError as exc:
        logger.exception("Scratch file error during conversion: %s", exc)
        return _err("Conversion failed.", status=500)

    except Exception as exc:  # noqa: BLE001
        logger.exception("Unexpected error during conversion: %s", exc)
        return _err("Conversion failed.", status=500)

    logger.info("Conversion complete — %d page(s).", result.page_count)
    return Response(
        content=result.pdf,
        media_type=PDF_CONTENT_TYPE,
        headers={
            "Content-Disposition": f'attachment; filename="{result.download_name}"',
            "X-Page-Count": str(result.page_count),
        },
    )
