"""
API Middleware Layer

Provides middleware components for request/response processing including:
- Security headers
- Early upload size rejection
- Error handling
- CORS (via FastAPI)
"""

from .security import (
    SecurityHeadersMiddleware,
    SecurityHeadersConfig,
    create_security_headers_middleware,
)

from .upload_limit import (
    UploadSizeLimitMiddleware,
    MULTIPART_OVERHEAD_BYTES,
)

from .error_handler import (
    ErrorHandlerMiddleware,
    ErrorHandlerConfig,
    create_error_handler_middleware,
    register_exception_handlers,
)

__all__ = [
    # Security headers
    'SecurityHeadersMiddleware',
    'SecurityHeadersConfig',
    'create_security_headers_middleware',

    # Upload limits
    'UploadSizeLimitMiddleware',
    'MULTIPART_OVERHEAD_BYTES',

    # Error handling
    'ErrorHandlerMiddleware',
    'ErrorHandlerConfig',
    'create_error_handler_middleware',
    'register_exception_handlers',
]
