"""Details API: aggregated size, file count and last modification of a path."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from gitstore.dependencies import get_details_service
from gitstore.exceptions import GitStoreError, InvalidPathError, NotFoundError
from gitstore.models.content import ErrorResponse, Summary
from gitstore.services.details import DetailsService
from gitstore.utils.error_handling import (
    error_headers,
    error_kind,
    error_status_code,
    format_error_response,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["details"])

_ERROR_RESPONSES: dict[int | str, dict] = {
    code: {"model": ErrorResponse} for code in (400, 404, 500, 502, 503, 504)
}


def _error_response(exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=error_status_code(exc),
        content=format_error_response(exc),
        headers=error_headers(exc),
    )


@router.get(
    "/details",
    response_model=Summary,
    response_model_exclude_none=True,
    responses=_ERROR_RESPONSES,
)
async def get_details(
    path: Annotated[str, Query(description="Repository path of a file or directory ('' is the root)")] = "",
    details_service: DetailsService = Depends(get_details_service),
) -> Summary | JSONResponse:
    """Get total size, file count and last modification for a file or directory."""
    try:
        return await details_service.get_details(path)
    except (NotFoundError, InvalidPathError) as exc:
        logger.info(
            "Details request rejected",
            extra={"path": path, "error_kind": error_kind(exc).value},
        )
        return _error_response(exc)
    except GitStoreError as exc:
        logger.warning(
            "Details request failed upstream",
            extra={"path": path, "error_kind": error_kind(exc).value, **exc.context},
        )
        return _error_response(exc)
    except Exception as exc:
        logger.exception(
            "Unexpected error computing details",
            extra={"path": path, "error_type": type(exc).__name__},
        )
        return _error_response(exc)
