"""
Map scheduling errors onto HTTP errors.

Body shape: {"detail": {"code": ..., "message": ...}}
"""

from fastapi import HTTPException

from rrdoubles.services.errors import (
    InputValidationError,
    LockConflictError,
    NotFoundError,
    ReassignmentConflictError,
    ScheduleInfeasibleError,
    SchedulingError,
)

STATUS_BY_ERROR = (
    (NotFoundError, 404),
    (InputValidationError, 400),
    (LockConflictError, 409),
    (ReassignmentConflictError, 409),
    (ScheduleInfeasibleError, 422),
)


def to_http_exception(exc: SchedulingError) -> HTTPException:
    status_code = 400
    for error_cls, code in STATUS_BY_ERROR:
        if isinstance(exc, error_cls):
            status_code = code
            break
    return HTTPException(status_code=status_code, detail=exc.to_dict())
