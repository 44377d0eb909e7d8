"""API v1 Router Aggregator.

Aggregates all v1 API endpoints into a single router.
"""

from fastapi import APIRouter

from worksync.api.v1.endpoints import files, folders, health, users, workspaces

api_router = APIRouter()

# Mount endpoint routers
api_router.include_router(health.router, prefix="/health", tags=["Health"])
api_router.include_router(users.router, prefix="/users", tags=["Users"])
api_router.include_router(workspaces.router, prefix="/workspaces", tags=["Workspaces"])
api_router.include_router(folders.router, prefix="/workspaces/{workspace_id}/folders", tags=["Folders"])
api_router.include_router(
    files.router,
    prefix="/workspaces/{workspace_id}/folders/{folder_id}/files",
    tags=["Files"],
)
