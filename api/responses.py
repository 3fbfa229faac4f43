"""
Translation of service Results into HTTP responses.
"""

from typing import Dict

from fastapi import HTTPException, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from catalog.pagination import PagedResult
from catalog.result import Result, ResultErrorType

STATUS_BY_ERROR: Dict[ResultErrorType, int] = {
    ResultErrorType.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ResultErrorType.BAD_REQUEST: status.HTTP_400_BAD_REQUEST,
    ResultErrorType.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ResultErrorType.SERVER_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

TOTAL_RECORDS_HEADER = "X-Total-Records"


def unwrap(result: Result):
    """
    Return the payload of a successful result.

    Raises:
        HTTPException: With the status matching the failure kind
    """
    if not result.is_success:
        raise HTTPException(
            status_code=STATUS_BY_ERROR.get(result.error_type, status.HTTP_500_INTERNAL_SERVER_ERROR),
            detail=result.error_message,
        )
    return result.data


def json_response(data, status_code: int = status.HTTP_200_OK, headers: Dict[str, str] = None) -> JSONResponse:
    if isinstance(data, BaseModel):
        content = data.model_dump(mode="json")
    elif isinstance(data, list):
        content = [item.model_dump(mode="json") if isinstance(item, BaseModel) else item for item in data]
    else:
        content = data
    return JSONResponse(content=content, status_code=status_code, headers=headers)


def paged_response(result: Result[PagedResult]) -> JSONResponse:
    """A page of records with its total count mirrored in the X-Total-Records header."""
    page = unwrap(result)
    return json_response(page, headers={TOTAL_RECORDS_HEADER: str(page.total_records)})
