from __future__ import annotations

from fastapi import HTTPException

from ... import errors
from ...results import OperationResult

STATUS_BY_ERROR: dict[type, int] = {
    errors.ValidationError: 400,
    errors.UsageError: 400,
    errors.ReferentialError: 422,
    errors.IntegrityViolation: 409,
    errors.ConflictError: 409,
    errors.IOErrorWithCode: 500,
    errors.InternalError: 500,
}


def http_error(exc: errors.AgendaError, *, status_code: int | None = None) -> HTTPException:
    return HTTPException(status_code=status_code or STATUS_BY_ERROR.get(type(exc), 400), detail=exc.message)


def raise_for_result(result: OperationResult) -> OperationResult:
    if not result:
        raise http_error(result.error)
    return result
