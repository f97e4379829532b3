"""
Error types and the DRF exception handler for the publisher API.

Every error leaves the API as::

    {"error": {"code": ..., "message": ..., "field"?: ..., "details"?: ...},
     "request_id": ...}

Workflow code raises the ``PublisherException`` subclasses below. Database
errors are never wrapped by the workflow; they reach the handler as raised
and are mapped here.
"""

import logging
import uuid
import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, IntegrityError
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    """Machine-readable codes carried in ``error.code``."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    AUTHENTICATION_REQUIRED = "AUTHENTICATION_REQUIRED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    NOT_FOUND = "NOT_FOUND"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    NOT_IMPLEMENTED = "NOT_IMPLEMENTED"

    # Uploads
    INVALID_CONTENT_TYPE = "INVALID_CONTENT_TYPE"
    CONTENT_TOO_LARGE = "CONTENT_TOO_LARGE"
    STORAGE_ERROR = "STORAGE_ERROR"

    # Database
    INTEGRITY_ERROR = "INTEGRITY_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"

    INTERNAL_ERROR = "INTERNAL_ERROR"


# DRF status codes that map to something more specific than VALIDATION_ERROR
_DRF_STATUS_CODES = {
    401: ErrorCode.AUTHENTICATION_REQUIRED,
    403: ErrorCode.PERMISSION_DENIED,
    404: ErrorCode.NOT_FOUND,
    405: ErrorCode.METHOD_NOT_ALLOWED,
    415: ErrorCode.INVALID_CONTENT_TYPE,
}


@dataclass
class ErrorEnvelope:
    """One error response body."""
    code: ErrorCode
    message: str
    request_id: str
    field: Optional[str] = None
    details: Dict[str, Any] = dataclasses.field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        error = {"code": self.code.value, "message": self.message}
        if self.field:
            error["field"] = self.field
        if self.details:
            error["details"] = self.details
        return {"error": error, "request_id": self.request_id}

    def to_response(self, status_code: int) -> Response:
        return Response(self.to_dict(), status=status_code)


class PublisherException(APIException):
    """
    Base for errors raised by publisher code.

    ``code``, ``field``, ``details`` and ``status_code`` may be overridden
    per instance; otherwise the class attributes apply.
    """

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = ErrorCode.INTERNAL_ERROR
    default_detail = "Request failed"

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[ErrorCode] = None,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        self.message = message or self.default_detail
        self.error_code = code or self.error_code
        self.field = field
        self.error_details = details or {}
        if status_code:
            self.status_code = status_code
        super().__init__(detail=self.message)

    def envelope(self, request_id: str) -> ErrorEnvelope:
        return ErrorEnvelope(
            code=self.error_code,
            message=self.message,
            request_id=request_id,
            field=self.field,
            details=self.error_details,
        )


class ValidationError(PublisherException):
    """
    Input rejected by the validators.

    ``messages`` maps each offending field to its list of messages.
    """
    error_code = ErrorCode.VALIDATION_ERROR
    default_detail = "Validation failed"

    @property
    def messages(self) -> Dict[str, Any]:
        return self.error_details


class NotFoundError(PublisherException):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = ErrorCode.NOT_FOUND
    default_detail = "Resource not found"


class UploadError(PublisherException):
    """An uploaded image was refused or could not be stored."""
    error_code = ErrorCode.INVALID_CONTENT_TYPE
    default_detail = "Upload failed"


def _request_id(context) -> str:
    request = (context or {}).get('request')
    return getattr(request, 'request_id', None) or str(uuid.uuid4())


def _drf_envelope(response: Response, request_id: str) -> ErrorEnvelope:
    code = _DRF_STATUS_CODES.get(response.status_code, ErrorCode.VALIDATION_ERROR)
    if response.status_code >= 500:
        code = ErrorCode.INTERNAL_ERROR

    data = response.data
    if isinstance(data, dict) and 'detail' in data:
        return ErrorEnvelope(code, str(data['detail']), request_id)
    if isinstance(data, dict):
        return ErrorEnvelope(code, "Validation failed", request_id, details=data)
    if isinstance(data, list):
        return ErrorEnvelope(code, str(data[0]) if data else "Error", request_id, details={"errors": data})
    return ErrorEnvelope(code, str(data), request_id)


def api_exception_handler(exc, context):
    """
    DRF ``EXCEPTION_HANDLER`` producing the standard error envelope.

    Order matters: ``IntegrityError`` is a ``DatabaseError`` and must be
    checked first.
    """
    request_id = _request_id(context)

    if isinstance(exc, PublisherException):
        logger.warning(
            f"{exc.error_code.value}: {exc.message}",
            extra={"error_code": exc.error_code.value, "field": exc.field},
        )
        return exc.envelope(request_id).to_response(exc.status_code)

    if isinstance(exc, DjangoValidationError):
        if hasattr(exc, 'message_dict'):
            envelope = ErrorEnvelope(
                ErrorCode.VALIDATION_ERROR, "Validation failed", request_id,
                details=exc.message_dict,
            )
        else:
            envelope = ErrorEnvelope(
                ErrorCode.VALIDATION_ERROR, exc.messages[0] if exc.messages else "Validation failed",
                request_id, details={"errors": exc.messages},
            )
        return envelope.to_response(status.HTTP_400_BAD_REQUEST)

    if isinstance(exc, Http404):
        envelope = ErrorEnvelope(ErrorCode.NOT_FOUND, str(exc) or "Resource not found", request_id)
        return envelope.to_response(status.HTTP_404_NOT_FOUND)

    if isinstance(exc, NotImplementedError):
        envelope = ErrorEnvelope(ErrorCode.NOT_IMPLEMENTED, str(exc) or "Operation not supported", request_id)
        return envelope.to_response(status.HTTP_501_NOT_IMPLEMENTED)

    if isinstance(exc, IntegrityError):
        logger.error(f"Integrity error: {exc}")
        envelope = ErrorEnvelope(ErrorCode.INTEGRITY_ERROR, "The request conflicts with stored data", request_id)
        return envelope.to_response(status.HTTP_409_CONFLICT)

    if isinstance(exc, DatabaseError):
        logger.error(f"Database error: {exc}")
        envelope = ErrorEnvelope(ErrorCode.DATABASE_ERROR, "A storage error occurred", request_id)
        return envelope.to_response(status.HTTP_500_INTERNAL_SERVER_ERROR)

    response = drf_exception_handler(exc, context)
    if response is not None:
        return _drf_envelope(response, request_id).to_response(response.status_code)

    logger.exception(f"Unhandled {type(exc).__name__}: {exc}")
    envelope = ErrorEnvelope(ErrorCode.INTERNAL_ERROR, "An unexpected error occurred", request_id)
    return envelope.to_response(status.HTTP_500_INTERNAL_SERVER_ERROR)


def created_response(data: Optional[Dict[str, Any]] = None, message: str = "Created successfully") -> Response:
    """201 response with ``data`` and a human-readable message."""
    body = dict(data or {})
    body['message'] = message
    return Response(body, status=status.HTTP_201_CREATED)
