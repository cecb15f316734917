"""
API Dependencies

FastAPI dependency injection functions for:
- Settings access
- Storage service access
- Request context setup

Everything is read from ``request.app.state``, which create_app() fills in;
there are no module-level instances.

@.architecture
Incoming: api/endpoints/*.py --- {Depends() injections from endpoints}
Processing: get_settings(), get_storage(), setup_request_context() --- {2 jobs: dependency_injection, context_setup}
Outgoing: api/endpoints/*.py --- {Settings instance, LocalFileStorage instance, request context dict}
"""

import uuid
from typing import Optional

from fastapi import Header, Request

from config.settings import Settings
from data.storage import LocalFileStorage
from monitoring import set_request_context

MAX_REQUEST_ID_LENGTH = 128


def get_settings(request: Request) -> Settings:
    """Settings the application was built with."""
    return request.app.state.settings


def get_storage(request: Request) -> LocalFileStorage:
    """Storage service bound to the configured storage root."""
    return request.app.state.storage


async def setup_request_context(
    request: Request,
    x_request_id: Optional[str] = Header(None)
) -> dict:
    """
    Setup request context for logging.

    Uses the caller's X-Request-ID when it looks sane, otherwise a new uuid4.

    Returns:
        dict: Request context information
    """
    request_id = x_request_id
    if not request_id or len(request_id) > MAX_REQUEST_ID_LENGTH or not request_id.isprintable():
        request_id = str(uuid.uuid4())

    client = request.client.host if request.client else None
    set_request_context(request_id=request_id, client=client)
    request.state.request_id = request_id

    return {
        "request_id": request_id,
        "method": request.method,
        "path": request.url.path
    }
