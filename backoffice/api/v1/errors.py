import structlog
from fastapi import HTTPException, status

from backoffice.core.exceptions import (
    ConcurrentUpdateError,
    ConsistencyError,
    InvalidAmountError,
    LedgerError,
    OverpaymentError,
    ReferenceInUseError,
    TerminalEntryError,
    UnknownReferenceError,
)

logger = structlog.get_logger(__name__)

# Spelled out; the starlette constant name changed between releases
HTTP_422_UNPROCESSABLE = 422

STATUS_BY_ERROR = {
    InvalidAmountError: HTTP_422_UNPROCESSABLE,
    OverpaymentError: HTTP_422_UNPROCESSABLE,
    UnknownReferenceError: HTTP_422_UNPROCESSABLE,
    TerminalEntryError: status.HTTP_409_CONFLICT,
    ReferenceInUseError: status.HTTP_409_CONFLICT,
    ConcurrentUpdateError: status.HTTP_409_CONFLICT,
    ConsistencyError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def to_http_exception(exc: LedgerError) -> HTTPException:
    """Map a rejected ledger operation to an HTTP error with a structured detail."""
    status_code = STATUS_BY_ERROR.get(type(exc), status.HTTP_400_BAD_REQUEST)
    if isinstance(exc, ConsistencyError):
        logger.error("data_integrity_violation", message=exc.message)
    return HTTPException(status_code=status_code, detail=exc.to_detail())
