"""
    Centralized exception handling for the FastAPI application.
"""
from typing import List, Optional
from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from botocore.exceptions import (
    ClientError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)
import logging

log = logging.getLogger(__name__)

RETRYABLE_ERROR_CODES = {
    "Throttling",
    "ThrottlingException",
    "SlowDown",
    "RequestTimeout",
    "ServiceUnavailable",
    "ProvisionedThroughputExceededException",
    "RequestLimitExceeded",
}

def error_code(exc: Exception) -> Optional[str]:
    """Returns the AWS error code carried by a botocore ClientError, if any."""
    if isinstance(exc, ClientError):
        return str(exc.response.get("Error", {}).get("Code", ""))
    return None

def is_retryable(exc) -> bool:
    """Timeouts, connection failures and throttling are worth retrying."""
    if isinstance(exc, (ConnectTimeoutError, ReadTimeoutError, EndpointConnectionError)):
        return True
    return error_code(exc) in RETRYABLE_ERROR_CODES

class ConfigurationError(Exception):
    """Raised at startup when required settings are missing or invalid."""

class APIException(Exception):
    """Base class for API exceptions."""
    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(self.detail)

    def to_content(self) -> dict:
        return {"detail": self.detail}

class StorageException(APIException):
    """Failure of one operation against an external store."""
    default_status = 500

    def __init__(self, operation: str, key: str, cause):
        self.operation = operation
        self.key = key
        self.cause = cause
        status_code = 503 if is_retryable(cause) else self.default_status
        super().__init__(status_code=status_code, detail=f"{operation} failed for '{key}': {cause}")

class StorageReadError(StorageException):
    """Exception for object store listing failures."""

class StorageWriteError(StorageException):
    """Exception for object store write and delete failures."""

class StorageNotFoundError(StorageException):
    """Exception for when an object does not exist."""
    default_status = 404

    def __init__(self, operation: str, key: str):
        super().__init__(operation, key, "object not found")

class SigningError(StorageException):
    """Exception for signed URL generation failures."""

class CounterStoreError(StorageException):
    """Exception for like counter table failures."""

class InvalidKeyError(APIException):
    """Exception for malformed storage keys."""
    def __init__(self, detail: str):
        super().__init__(status_code=400, detail=detail)

class BatchDeleteError(APIException):
    """A deletion batch stopped at its first failing key."""
    def __init__(self, failed_key: str, cause: APIException, deleted: List[str]):
        self.failed_key = failed_key
        self.cause = cause
        self.deleted = deleted
        super().__init__(
            status_code=cause.status_code,
            detail=f"Deletion stopped at '{failed_key}': {cause.detail}",
        )

    def to_content(self) -> dict:
        return {"detail": self.detail, "failed_key": self.failed_key, "deleted": self.deleted}

async def api_exception_handler(request: Request, exc: APIException):
    """Handles API exceptions."""
    log.error(f"API Exception: {exc.detail}", exc_info=exc)
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_content(),
    )

async def http_exception_handler(request: Request, exc: HTTPException):
    """Handles FastAPI HTTP exceptions."""
    log.error(f"HTTP Exception: {exc.detail}", exc_info=exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
    )

async def generic_exception_handler(request: Request, exc: Exception):
    """Handles all other exceptions."""
    log.error(f"Unhandled Exception: {str(exc)}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "An unexpected error occurred."},
    )

def add_exception_handlers(app):
    """Adds exception handlers to the FastAPI app."""
    app.add_exception_handler(APIException, api_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
