"""
Request ID middleware - Inject X-Request-ID for request correlation.

Provides:
- Request ID on every request (client-supplied or generated)
- X-Request-ID response header
- A logging filter that stamps request_id on valuation log records
"""

import logging
import uuid
from flask import Flask, request, g, has_request_context


class RequestIdFilter(logging.Filter):
    """Attach the current request ID (or '-') to every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id()
        return True


def setup_request_id_middleware(app: Flask) -> None:
    """
    Set up request ID middleware on Flask app.

    Injects X-Request-ID into:
    - Flask's g object (g.request_id)
    - Response headers (X-Request-ID)

    Args:
        app: Flask application instance
    """

    @app.before_request
    def inject_request_id():
        request_id = request.headers.get('X-Request-ID')
        if not request_id:
            request_id = str(uuid.uuid4())
        g.request_id = request_id

    @app.after_request
    def add_request_id_header(response):
        if hasattr(g, 'request_id'):
            response.headers['X-Request-ID'] = g.request_id
        return response


def get_request_id() -> str:
    """
    Get current request ID from Flask context.

    Returns:
        Request ID string, or '-' outside a request
    """
    if has_request_context() and hasattr(g, 'request_id'):
        return g.request_id
    return '-'
