"""
Upload Size Limit Middleware - API Layer

Rejects oversized uploads from the Content-Length header, before any of the
body is read.

@.architecture
Incoming: app.py (middleware registration), HTTP requests --- {POST /upload with Content-Length header}
Processing: dispatch(), _declared_length() --- {1 job: early_size_rejection}
Outgoing: Frontend (HTTP) --- {413/400 JSONResponse or pass-through}

The header covers the whole multipart body, so the limit allows some
overhead for boundaries and part headers. The upload handler still enforces
the exact file limit while reading.
"""

import logging
from typing import Callable, Iterable, Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)

MULTIPART_OVERHEAD_BYTES = 64 * 1024


class UploadSizeLimitMiddleware(BaseHTTPMiddleware):
    """Short-circuit POSTs whose declared body size cannot fit the upload limit."""

    def __init__(
        self,
        app: ASGIApp,
        max_upload_bytes: int,
        paths: Iterable[str] = ("/upload",),
        overhead_bytes: int = MULTIPART_OVERHEAD_BYTES
    ):
        super().__init__(app)
        self.max_upload_bytes = max_upload_bytes
        self.max_body_bytes = max_upload_bytes + overhead_bytes
        self.paths = frozenset(paths)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.method != "POST" or request.url.path not in self.paths:
            return await call_next(request)

        header = request.headers.get("content-length")
        if header is None:
            return await call_next(request)

        length = self._declared_length(header)
        if length is None:
            return JSONResponse(status_code=400, content={"error": "Invalid Content-Length header"})

        if length > self.max_body_bytes:
            logger.warning(
                f"Upload rejected before reading body: {length} bytes declared, "
                f"limit {self.max_upload_bytes} bytes"
            )
            return JSONResponse(
                status_code=413,
                content={"error": f"File exceeds maximum upload size of {self.max_upload_bytes} bytes"}
            )

        return await call_next(request)

    @staticmethod
    def _declared_length(header: str) -> Optional[int]:
        try:
            length = int(header)
        except ValueError:
            return None
        return length if length >= 0 else None
