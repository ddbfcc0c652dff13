"""
API package - HTTP boundary for the valuation engine.

This package provides:
- Pydantic params models for request validation
- Response envelope helpers
- Global middleware (request_id, error_envelope)

The valuation core never imports from here.
"""
