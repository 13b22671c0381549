"""
Error envelope middleware - Standardize all error responses.

Provides consistent error response format:
{
    "error": {
        "code": "INVALID_PARAMS",
        "message": "Expected JSON, got: 'name=asd'",
        "requestId": "uuid",
        "field": "query"
    }
}
"""

import logging
from typing import Optional

from flask import Flask, g, jsonify
from werkzeug.exceptions import HTTPException

from db.store import StoreError
from utils.normalize import MalformedParameter


logger = logging.getLogger('api.middleware.error')


# Error codes reference
ERROR_CODES = {
    # Client errors (4xx)
    "BAD_REQUEST": 400,
    "NOT_FOUND": 404,
    "METHOD_NOT_ALLOWED": 405,
    "INVALID_PARAMS": 400,

    # Server errors (5xx)
    "STORE_ERROR": 500,
    "INTERNAL_ERROR": 500,
}


def setup_error_handlers(app: Flask) -> None:
    """
    Set up standardized error handlers on Flask app.

    Handles:
    - MalformedParameter -> 400 INVALID_PARAMS (never retried)
    - StoreError -> 500 STORE_ERROR
    - HTTP exceptions (404, 405, ...) keep their status codes
    - Unhandled Python exceptions -> 500 INTERNAL_ERROR
    """

    @app.errorhandler(MalformedParameter)
    def handle_malformed_parameter(error):
        logger.info(
            "invalid_params field=%s message=%s request_id=%s",
            error.field, error, getattr(g, 'request_id', None),
        )
        return make_error_response("INVALID_PARAMS", str(error), field=error.field)

    @app.errorhandler(StoreError)
    def handle_store_error(error):
        logger.error(
            f"Store error: {error}",
            extra={
                "event": "store_error",
                "request_id": getattr(g, 'request_id', None),
                "collection": error.collection,
            }
        )
        return make_error_response("STORE_ERROR", str(error))

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        # "Not Found" -> "NOT_FOUND"
        code = error.name.upper().replace(' ', '_')
        return make_error_response(code, error.description, status_code=error.code)

    @app.errorhandler(Exception)
    def handle_generic_error(error):
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


def make_error_response(
    code: str,
    message: str,
    status_code: Optional[int] = None,
    field: Optional[str] = None,
    details: Optional[dict] = None,
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

    error = {
        "error": {
            "code": code,
            "message": message,
            "requestId": request_id,
        }
    }

    if field:
        error["error"]["field"] = field
    if details:
        error["error"]["details"] = details

    response = jsonify(error)
    if request_id:
        response.headers['X-Request-ID'] = request_id

    return response, status_code
