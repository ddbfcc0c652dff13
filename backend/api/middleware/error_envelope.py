"""
Error envelope middleware - Standardize all error responses.

Provides consistent error response format:
{
    "error": {
        "code": "INVALID_PARAMS",
        "message": "Expected floor band like '11-15' or '31+', got 'abc'",
        "field": "targetFloor",
        "requestId": "uuid"
    }
}
"""

import logging
from flask import Flask, jsonify, g
from pydantic import ValidationError as PydanticValidationError
from werkzeug.exceptions import HTTPException

from api.serializers.response import error_envelope
from utils.normalize import ValidationError as NormalizeValidationError


logger = logging.getLogger('api.middleware.error')


# Error codes reference
ERROR_CODES = {
    "BAD_REQUEST": 400,
    "INVALID_PARAMS": 400,
    "NOT_FOUND": 404,
    "METHOD_NOT_ALLOWED": 405,
    "UNSUPPORTED_MEDIA_TYPE": 415,
    "INTERNAL_ERROR": 500,
}


def make_error_response(
    code: str,
    message: str,
    status_code: int = None,
    field: str = None,
    details: dict = None,
):
    """
    Create a standardized error response.

    Args:
        code: Error code (e.g., "INVALID_PARAMS")
        message: Human-readable error message
        status_code: HTTP status code (defaults based on error code)
        field: Optional field name that caused the error
        details: Optional additional details dict

    Returns:
        Tuple of (response, status_code)
    """
    request_id = getattr(g, 'request_id', None)

    if status_code is None:
        status_code = ERROR_CODES.get(code, 500)

    response = jsonify(error_envelope(code, message, field=field, details=details))
    if request_id:
        response.headers['X-Request-ID'] = request_id

    return response, status_code


def pydantic_error_field(error: PydanticValidationError) -> str:
    """Dotted location of the first failing field, e.g. 'filters.floorBand'."""
    errors = error.errors()
    if not errors:
        return None
    return '.'.join(str(part) for part in errors[0].get('loc', ()))


def setup_error_handlers(app: Flask) -> None:
    """
    Set up standardized error handlers on Flask app.

    Handles:
    - Input contract violations (normalize / pydantic ValidationError) -> 400
    - HTTP exceptions (400, 404, 405, ...)
    - Unhandled Python exceptions -> 500

    Args:
        app: Flask application instance
    """

    @app.errorhandler(NormalizeValidationError)
    def handle_validation_error(error):
        """Contract violation raised below the route layer."""
        return make_error_response(
            "INVALID_PARAMS",
            str(error),
            field=error.field,
            details={"receivedValue": str(error.received_value)} if error.received_value is not None else None,
        )

    @app.errorhandler(PydanticValidationError)
    def handle_pydantic_error(error):
        """Request body failed its params model."""
        errors = error.errors()
        message = errors[0].get('msg', str(error)) if errors else str(error)
        return make_error_response(
            "INVALID_PARAMS",
            message,
            field=pydantic_error_field(error),
        )

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        """Handle Flask/Werkzeug HTTP exceptions."""
        # "Not Found" -> "NOT_FOUND"
        code = error.name.upper().replace(' ', '_')
        return make_error_response(code, error.description, status_code=error.code)

    @app.errorhandler(Exception)
    def handle_generic_error(error):
        """Handle unhandled Python exceptions."""
        request_id = getattr(g, 'request_id', None)

        logger.exception(
            f"Unhandled error: {error}",
            extra={
                "event": "unhandled_error",
                "request_id": request_id,
                "error_type": type(error).__name__,
            }
        )

        return make_error_response("INTERNAL_ERROR", "An unexpected error occurred")
