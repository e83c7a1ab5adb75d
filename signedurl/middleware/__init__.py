"""Middleware package for ASGI applications"""
from signedurl.middleware.logging_middleware import RequestLoggingMiddleware, get_current_request_id
from signedurl.middleware.signed import (
    SignedURLMiddleware,
    build_request_url,
    request_origin,
    request_path,
    require_signed_url,
    signature_error_handler,
    signature_error_response,
    signed_url_dependency,
)

__all__ = [
    'RequestLoggingMiddleware',
    'SignedURLMiddleware',
    'build_request_url',
    'get_current_request_id',
    'request_origin',
    'request_path',
    'require_signed_url',
    'signature_error_handler',
    'signature_error_response',
    'signed_url_dependency',
]
