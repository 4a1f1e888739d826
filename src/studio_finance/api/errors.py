"""Mapping of engine failures onto HTTP responses."""

from typing import TypeVar

from fastapi import HTTPException

from studio_finance.errors import ErrorCode
from studio_finance.finance import OperationResult

T = TypeVar("T")

STATUS_BY_CODE: dict[str, int] = {
    ErrorCode.NOT_FOUND.value: 404,
    ErrorCode.INVALID_STATE.value: 409,
    ErrorCode.VALIDATION_FAILED.value: 422,
    ErrorCode.STORAGE_FAILURE.value: 503,
}


def error_body(code: ErrorCode, message: str | None, details: dict | None = None) -> dict:
    return {"code": code.value, "message": message or "", "details": details or {}}


def http_status_for(code: ErrorCode) -> int:
    return STATUS_BY_CODE.get(code.value, 400)


def unwrap(result: OperationResult[T]) -> T:
    """Return the data of a successful result, else raise the matching HTTP error."""
    if result.ok:
        return result.data
    raise HTTPException(
        status_code=http_status_for(result.error_code),
        detail=error_body(result.error_code, result.message, result.details),
    )
