"""
Security Headers Middleware - API Layer

Adds security headers to every HTTP response.

@.architecture
Incoming: app.py (middleware registration), HTTP requests --- {FastAPI Request objects, HTTP responses from endpoints}
Processing: dispatch(), _add_headers(), build_csp_header(), build_hsts_header() --- {2 jobs: header_injection, response_interception}
Outgoing: Frontend (HTTP) --- {HTTP Response with security headers: CSP, X-Frame-Options, X-Content-Type-Options, Referrer-Policy, HSTS}
"""

import logging
from typing import Callable, Dict, Optional, Tuple

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)

# Interactive docs pull scripts from a CDN; a locked-down CSP would break them
DOCS_PATHS: Tuple[str, ...] = ("/docs", "/redoc", "/openapi.json")


class SecurityHeadersConfig:
    """Configuration for security headers."""

    def __init__(
        self,
        enable_csp: bool = True,
        csp_directives: Optional[Dict[str, str]] = None,
        x_frame_options: Optional[str] = "DENY",
        x_content_type_options: str = "nosniff",
        referrer_policy: str = "no-referrer",
        enable_hsts: bool = False,
        hsts_max_age: int = 31536000,
    ):
        self.enable_csp = enable_csp
        self.csp_directives = csp_directives or self._default_csp_directives()
        self.x_frame_options = x_frame_options
        self.x_content_type_options = x_content_type_options
        self.referrer_policy = referrer_policy
        self.enable_hsts = enable_hsts
        self.hsts_max_age = hsts_max_age

    @staticmethod
    def _default_csp_directives() -> Dict[str, str]:
        # Responses are JSON or PDF bytes; nothing should execute or embed
        return {
            "default-src": "'none'",
            "frame-ancestors": "'none'",
            "base-uri": "'none'",
            "form-action": "'none'",
            "sandbox": "",
        }

    def build_csp_header(self) -> str:
        directives = []
        for key, value in self.csp_directives.items():
            directives.append(f"{key} {value}" if value else key)
        return "; ".join(directives)

    def build_hsts_header(self) -> str:
        return f"max-age={self.hsts_max_age}; includeSubDomains"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add security headers to all responses.

    Protects against:
    - MIME sniffing of downloaded files
    - Clickjacking
    - Script execution in served content
    """

    def __init__(self, app: ASGIApp, config: Optional[SecurityHeadersConfig] = None):
        super().__init__(app)
        self.config = config or SecurityHeadersConfig()

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        self._add_headers(response, docs=request.url.path.startswith(DOCS_PATHS))
        return response

    def _add_headers(self, response: Response, docs: bool = False) -> None:
        if self.config.enable_csp and not docs:
            response.headers["Content-Security-Policy"] = self.config.build_csp_header()

        if self.config.x_frame_options:
            response.headers["X-Frame-Options"] = self.config.x_frame_options

        if self.config.x_content_type_options:
            response.headers["X-Content-Type-Options"] = self.config.x_content_type_options

        if self.config.referrer_policy:
            response.headers["Referrer-Policy"] = self.config.referrer_policy

        if self.config.enable_hsts:
            response.headers["Strict-Transport-Security"] = self.config.build_hsts_header()


def create_security_headers_middleware(production: bool = False):
    """
    Create security headers middleware factory with environment-appropriate config.

    Args:
        production: Whether running in production (enables HSTS)

    Returns:
        Middleware class and kwargs for FastAPI
    """
    config = SecurityHeadersConfig(enable_hsts=production)
    return (SecurityHeadersMiddleware, {"config": config})
