"""
Mapping from engine errors to HTTP responses.
"""

from fastapi import HTTPException

from vpn_sales.exceptions import (
    EngineError,
    InsufficientFunds,
    InvalidState,
    NotFound,
    ProvisioningFailed,
    ValidationError,
)

STATUS_CODES = {
    NotFound: 404,
    InvalidState: 409,
    InsufficientFunds: 402,
    ProvisioningFailed: 502,
    ValidationError: 422,
}


def http_error(exc: EngineError) -> HTTPException:
    for error_type, status_code in STATUS_CODES.items():
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))
