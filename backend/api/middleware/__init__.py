"""
Global middleware for API requests.

Provides:
- Request ID injection (X-Request-ID) and log correlation
- Error envelope standardization
"""

from .request_id import setup_request_id_middleware, RequestIdFilter
from .error_envelope import setup_error_handlers

__all__ = [
    'setup_request_id_middleware',
    'RequestIdFilter',
    'setup_error_handlers',
]
