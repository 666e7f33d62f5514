"""
docpipe/api/upload_controller.py

Handles incoming requests to POST /upload.

Responses:
  200  The file is stored.  Body: { "success": true, "url": ..., "file_name": ... }
  400  The 'file' field was missing, empty or duplicated.
  413  The body exceeded STORAGE_MAX_UPLOAD_BYTES.
  502  The object store rejected or failed the upload.
  503  Object storage is not configured on this deployment.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from docpipe.api.forms import read_single_upload
from docpipe.core.exceptions import (
    StorageNotConfiguredError,
    UploadTooLargeError,
    UpstreamUploadFailed,
    ValidationError,
)
from docpipe.core.logger import get_logger
from docpipe.models.conversion_models import ErrorResponse
from docpipe.models.upload_models import UploadResponse
from docpipe.services.upload_service import UploadService, get_upload_service

logger = get_logger(__name__)

router = APIRouter(prefix="/upload", tags=["Upload"])


def _err(message: str, status: int = 400) -> JSONResponse:
    """Return a JSON error response with the standard error shape."""
    return JSONResponse(status_code=status, content={"error": message})


@router.post(
    "",
    response_model=UploadResponse,
    summary="Upload a file to object storage",
    responses={
        400: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
async def upload(
    request: Request,
    service: UploadService = Depends(get_upload_service),
) -> JSONResponse:
    try:
        document = await read_single_upload(request)
    except UploadTooLargeError as exc:
        return _err(f"File too large (max {exc.limit} bytes).", status=413)
    except ValidationError as exc:
        return _err(str(exc))

    logger.info("Upload request received — %d byte(s).", document.size)

    try:
        result = await service.upload(document)

    except ValidationError as exc:
        return _err(str(exc))

    except StorageNotConfiguredError as exc:
        logger.error("Upload rejected: %s", exc)
        return _err("File storage is not available.", status=503)

    except UpstreamUploadFailed as exc:
        logger.error("Object storage upload failed: %s", exc)
        return _err("Upload to object storage failed.", status=502)

    except Exception as exc:  # noqa: BLE001
        logger.exception("Unexpected error during upload: %s", exc)
        return _err("Upload failed.", status=500)

    return JSONResponse(status_code=200, content=result.model_dump())
