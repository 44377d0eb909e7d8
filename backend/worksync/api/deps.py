"""Shared FastAPI dependencies.

- persistence / identity providers (overridable in tests)
- bearer-token authentication
- QueryResult -> HTTP response mapping
"""

from typing import Annotated, TypeVar

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from worksync.components.workspace.models import User
from worksync.services.identity import IdentityResolver
from worksync.services.persistence import ErrorKind, PersistenceService, QueryResult

T = TypeVar("T")

security = HTTPBearer()

_persistence: PersistenceService | None = None
_identity: IdentityResolver | None = None

_STATUS_BY_KIND = {
    ErrorKind.validation: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.not_found: status.HTTP_404_NOT_FOUND,
    ErrorKind.persistence: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def get_persistence() -> PersistenceService:
    """Get the application persistence service."""
    global _persistence
    if _persistence is None:
        _persistence = PersistenceService()
    return _persistence


def get_identity() -> IdentityResolver:
    """Get the application identity resolver."""
    global _identity
    if _identity is None:
        _identity = IdentityResolver()
    return _identity


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    identity: IdentityResolver = Depends(get_identity),
) -> User:
    """Get current authenticated user from JWT token."""
    user = identity.resolve(credentials.credentials)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def unwrap(result: QueryResult[T]) -> T:
    """Return the result data or raise the matching HTTPException."""
    if result.ok:
        return result.data
    raise HTTPException(status_code=_STATUS_BY_KIND[result.kind], detail=result.error)


async def require_workspace_access(
    workspace_id: str,
    user: User,
    persistence: PersistenceService,
) -> None:
    """Raise 404 unless the user owns or collaborates on the workspace.

    Workspaces the user cannot see are reported as missing.
    """
    allowed = unwrap(await persistence.has_workspace_access(workspace_id, user.id))
    if not allowed:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Workspace {workspace_id} not found")


CurrentUser = Annotated[User, Depends(get_current_user)]
Persistence = Annotated[PersistenceService, Depends(get_persistence)]
