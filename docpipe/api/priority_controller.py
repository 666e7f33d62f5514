"""
docpipe/api/priority_controller.py

Handles incoming requests to POST /suggest-priority.

Responses:
  200  { "priority": "Low" | "Medium" | "High" }
  422  The JSON body was malformed or the title was blank.
  502  The language model failed or gave an unusable answer.
  503  No language model is configured on this deployment.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from docpipe.core.exceptions import PrioritizerNotConfiguredError, PrioritySuggestionError
from docpipe.core.logger import get_logger
from docpipe.models.conversion_models import ErrorResponse
from docpipe.models.priority_models import PriorityRequest, PriorityResponse
from docpipe.services.priority_service import PriorityService, get_priority_service

logger = get_logger(__name__)

router = APIRouter(prefix="/suggest-priority", tags=["Tasks"])


def _err(message: str, status: int) -> JSONResponse:
    return JSONResponse(status_code=status, content={"error": message})


@router.post(
    "",
    response_model=PriorityResponse,
    summary="Suggest a priority for a task",
    responses={502: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
async def suggest_priority(
    body: PriorityRequest,
    service: PriorityService = Depends(get_priority_service),
) -> JSONResponse:
    try:
        result = await service.suggest(body)

    except PrioritizerNotConfiguredError as exc:
        logger.error("Priority suggestion unavailable: %s", exc)
        return _err("Priority suggestion is not available.", status=503)

    except PrioritySuggestionError as exc:
        logger.error("Priority suggestion failed: %s", exc)
        return _err("Priority suggestion failed.", status=502)

    except Exception as exc:  # noqa: BLE001
        logger.exception("Unexpected error during priority suggestion: %s", exc)
        return _err("Priority suggestion failed.", status=500)

    return JSONResponse(status_code=200, content=result.model_dump())
