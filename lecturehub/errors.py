"""
lecturehub/errors.py
Centralized API error contract

CORE PRINCIPLES:
- All errors follow consistent structure
- Errors are user-safe (no stack traces)
- Errors are machine-readable

ERROR RESPONSE STRUCTURE:
{
    "success": false,
    "error": "ErrorType",
    "message": "Human-readable description",
    "code": "UNIQUE_ERROR_CODE",
    "details": {} (optional)
}

HTTP STATUS CODE DISCIPLINE:
- 200: Successful, valid request
- 202: Accepted with degraded attribution (partial failure)
- 400: Invalid draft / malformed request
- 401: Authentication missing or expired
- 403: Access forbidden
- 404: Resource does not exist
- 409: Conflict (duplicate append, consistency fault)
- 422: Validation error (Pydantic)
- 429: Rate limit exceeded
- 500: NEVER caused by user input (internal only)
"""

import logging
from typing import Optional, Dict, Any
from fastapi import HTTPException, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from lecturehub.exceptions import LectureHubException, PartialAttributionFailure

logger = logging.getLogger(__name__)


class ErrorCode:
    """Unique error codes for machine-readable error handling"""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_INPUT = "INVALID_INPUT"

    AUTH_REQUIRED = "AUTH_REQUIRED"
    AUTH_EXPIRED = "AUTH_EXPIRED"
    AUTH_INVALID = "AUTH_INVALID"

    FORBIDDEN = "FORBIDDEN"
    PHOTO_GROUP_FORBIDDEN = "PHOTO_GROUP_FORBIDDEN"
    ADMIN_REQUIRED = "ADMIN_REQUIRED"

    NOT_FOUND = "NOT_FOUND"
    MODULE_NOT_FOUND = "MODULE_NOT_FOUND"
    DISCIPLINE_NOT_FOUND = "DISCIPLINE_NOT_FOUND"

    MISSING_TARGET = "MISSING_TARGET"
    TARGET_NOT_FOUND = "TARGET_NOT_FOUND"
    DISCIPLINE_MISMATCH = "DISCIPLINE_MISMATCH"
    MISSING_SLUG = "MISSING_SLUG"
    UNKNOWN_DISCIPLINE = "UNKNOWN_DISCIPLINE"
    DUPLICATE_APPEND = "DUPLICATE_APPEND"

    CONSISTENCY_FAULT = "CONSISTENCY_FAULT"
    PARTIAL_ATTRIBUTION = "PARTIAL_ATTRIBUTION"

    RATE_LIMITED = "RATE_LIMITED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorResponse(BaseModel):
    """Standard error response model"""
    success: bool = False
    error: str
    message: str
    code: str
    details: Optional[Dict[str, Any]] = None


class APIError(Exception):
    """Base API exception with consistent structure"""

    def __init__(
        self,
        status_code: int,
        error: str,
        message: str,
        code: str,
        details: Optional[Dict[str, Any]] = None
    ):
        self.status_code = status_code
        self.error = error
        self.message = message
        self.code = code
        self.details = details
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "success": False,
            "error": self.error,
            "message": self.message,
            "code": self.code
        }
        if self.details:
            result["details"] = self.details
        return result

    def to_response(self) -> JSONResponse:
        return JSONResponse(status_code=self.status_code, content=self.to_dict())


ERROR_MAPPING = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    409: "Conflict",
    422: "Validation Error",
    429: "Too Many Requests",
    500: "Internal Error",
}


def from_domain_exception(exc: LectureHubException) -> APIError:
    """Translate a domain exception into the API error contract"""
    error = ERROR_MAPPING.get(exc.status_code, "Error")
    details = dict(exc.details) if exc.details else None
    if isinstance(exc, PartialAttributionFailure):
        error = "Partial Attribution"
        if exc.module:
            details["module"] = exc.module
    return APIError(
        status_code=exc.status_code,
        error=error,
        message=exc.message,
        code=exc.code,
        details=details
    )


def raise_bad_request(message: str, code: str = ErrorCode.INVALID_INPUT, details: Optional[Dict] = None):
    """Raise 400 Bad Request"""
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"success": False, "error": "Bad Request", "message": message, "code": code, "details": details}
    )


def raise_unauthorized(message: str = "Authentication required", code: str = ErrorCode.AUTH_REQUIRED):
    """Raise 401 Unauthorized"""
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"success": False, "error": "Unauthorized", "message": message, "code": code},
        headers={"WWW-Authenticate": "Bearer"},
    )


def raise_forbidden(message: str, code: str = ErrorCode.FORBIDDEN):
    """Raise 403 Forbidden"""
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail={"success": False, "error": "Forbidden", "message": message, "code": code}
    )

