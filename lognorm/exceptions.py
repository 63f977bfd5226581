"""Exception taxonomy and API error handling for lognorm.

Startup-class errors (schema, registry, classifier configuration) must stop
the process from serving traffic. Per-record errors (unknown source, parse,
validation) are recovered by the pipeline: counted, logged and dropped.
"""

import logging
from collections.abc import Awaitable, Callable
from uuid import uuid4

from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

logger = logging.getLogger(__name__)

# =============================================================================
# Error Response Model
# =============================================================================


class ErrorDetail(BaseModel):
    """Detailed error information."""

    field: str | None = None
    message: str
    code: str | None = None


class ErrorResponse(BaseModel):
    """Standardized error response format."""

    error: str  # Error type/category
    message: str  # Human-readable message
    code: str  # Machine-readable error code
    status_code: int
    request_id: str
    details: list[ErrorDetail] | None = None
    path: str | None = None


# =============================================================================
# Base Exception
# =============================================================================


class LogNormException(Exception):
    """Base exception for lognorm errors."""

    code = "INTERNAL_ERROR"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: list[ErrorDetail] | None = None,
    ):
        self.message = message
        if code:
            self.code = code
        self.details = details
        super().__init__(message)


# =============================================================================
# Startup Errors
# =============================================================================


class SchemaError(LogNormException):
    """A schema declaration is internally inconsistent."""

    code = "SCHEMA_ERROR"

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)


class RegistryError(LogNormException):
    """Registry construction failed. Fatal at startup."""

    code = "REGISTRY_ERROR"


class DuplicateNameError(RegistryError):
    """Two log type declarations share a name."""

    code = "DUPLICATE_LOG_TYPE"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Duplicate log type '{name}'")


class InvalidSchemaError(RegistryError):
    """A log type declaration carries a schema that fails validation."""

    code = "INVALID_SCHEMA"

    def __init__(self, name: str, cause: SchemaError):
        self.name = name
        self.cause = cause
        super().__init__(f"Invalid schema for log type '{name}': {cause.message}")


class MissingParserError(RegistryError):
    """A log type declaration has no parser factory."""

    code = "MISSING_PARSER"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Log type '{name}' has no parser factory")


class ClassifierConfigError(LogNormException):
    """Source classification rules reference unknown log types."""

    code = "CLASSIFIER_CONFIG_ERROR"


# =============================================================================
# Lookup Errors
# =============================================================================


class LogTypeNotFoundError(LogNormException):
    """Log type is not registered."""

    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Log type '{name}' not found")


# =============================================================================
# Per-record Errors
# =============================================================================


class RecordError(LogNormException):
    """Base class for errors scoped to a single raw record."""

    kind = "record"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class UnknownSourceError(RecordError):
    """A source hint could not be resolved to a log type."""

    kind = "unknown_source"
    code = "UNKNOWN_SOURCE"

    def __init__(self, source_hint: str):
        self.source_hint = source_hint
        super().__init__(f"No log type configured for source '{source_hint}'")


class ParseError(RecordError):
    """A raw record could not be decoded by its parser adapter."""

    kind = "parse"
    code = "PARSE_ERROR"


class TypeMismatch(RecordError):
    """A value does not fit the field it is matched against."""

    kind = "type_mismatch"
    code = "TYPE_MISMATCH"

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)


class ValidationError(RecordError):
    """A candidate record failed schema validation on a required field."""

    kind = "validation"
    code = "VALIDATION_ERROR"

    def __init__(self, log_type: str, cause: TypeMismatch):
        self.log_type = log_type
        self.cause = cause
        super().__init__(
            f"{log_type}: {cause.message}",
            details=[ErrorDetail(field=cause.path or None, message=cause.message, code=cause.code)],
        )


class InternalRecordError(RecordError):
    """Unexpected failure while processing one raw record."""

    kind = "internal"
    code = "INTERNAL_RECORD_ERROR"

    def __init__(self, cause: Exception):
        self.cause = cause
        super().__init__(f"{type(cause).__name__}: {cause}")


# =============================================================================
# Sink Errors
# =============================================================================


class SinkError(LogNormException):
    """A sealed batch could not be handed off to the sink."""

    code = "SINK_ERROR"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


# =============================================================================
# Exception Handlers
# =============================================================================


def create_error_response(
    request: Request,
    error: str,
    message: str,
    code: str,
    status_code: int,
    details: list[ErrorDetail] | None = None,
) -> JSONResponse:
    """Create a standardized error response."""
    request_id = getattr(request.state, "request_id", str(uuid4()))

    response = ErrorResponse(
        error=error,
        message=message,
        code=code,
        status_code=status_code,
        request_id=request_id,
        details=details,
        path=str(request.url.path),
    )

    return JSONResponse(
        status_code=status_code,
        content=response.model_dump(exclude_none=True),
    )


async def lognorm_exception_handler(request: Request, exc: LogNormException) -> JSONResponse:
    """Handle lognorm exceptions."""
    return create_error_response(
        request=request,
        error=exc.__class__.__name__,
        message=exc.message,
        code=exc.code,
        status_code=exc.status_code,
        details=exc.details,
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle request body validation errors."""
    details = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"])
        details.append(
            ErrorDetail(
                field=field,
                message=error["msg"],
                code=error["type"],
            )
        )

    return create_error_response(
        request=request,
        error="RequestValidationError",
        message="Request validation failed",
        code="VALIDATION_ERROR",
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        details=details,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle uncaught exceptions."""
    logger.exception("Unhandled exception: %s", exc)

    return create_error_response(
        request=request,
        error="InternalServerError",
        message="An unexpected error occurred",
        code="INTERNAL_ERROR",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


async def request_id_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Add request ID to each request for tracing."""
    request_id = request.headers.get("X-Request-ID", str(uuid4()))
    request.state.request_id = request_id

    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(LogNormException, lognorm_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.middleware("http")(request_id_middleware)
