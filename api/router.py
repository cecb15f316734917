"""
API Router

Aggregates the endpoint routers. Routes are served at the root: the file
endpoints are /upload, /download and /files.

@.architecture
Incoming: app.py, api/endpoints/*.py --- {app.include_router() call, endpoint router instances}
Processing: api_router.include_router() --- {1 job: router_aggregation}
Outgoing: app.py --- {APIRouter, HTTP request routing to endpoints}
"""

from fastapi import APIRouter

from api.endpoints import files_router, health_router

api_router = APIRouter()

# Files (upload, download, listing)
api_router.include_router(files_router)

# Health and metrics
api_router.include_router(health_router)
