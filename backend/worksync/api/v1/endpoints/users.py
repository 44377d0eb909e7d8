"""User API endpoints."""

from fastapi import APIRouter, Query

from worksync.api.deps import CurrentUser, Persistence, unwrap
from worksync.components.workspace.keys import NodeKey
from worksync.components.workspace.models import Landing, Subscription, User
from worksync.services.persistence import ErrorKind

router = APIRouter()


@router.get("/me", response_model=User)
async def get_me(user: CurrentUser) -> User:
    """Get the current user."""
    return user


@router.get("/me/subscription", response_model=Subscription)
async def get_my_subscription(user: CurrentUser, persistence: Persistence) -> Subscription:
    """Get the current user's subscription; 404 when there is none."""
    return unwrap(await persistence.get_user_subscription_status(user.id))


@router.get("/me/landing", response_model=Landing)
async def get_my_landing(user: CurrentUser, persistence: Persistence) -> Landing:
    """Resolve the dashboard entry point: the first owned workspace, or setup."""
    workspace = unwrap(await persistence.get_first_workspace(user.id))
    if workspace is not None:
        return Landing(setup=False, workspaceId=workspace.id, path=NodeKey(workspace.id).path)

    subscription = await persistence.get_user_subscription_status(user.id)
    if not subscription.ok and subscription.kind != ErrorKind.not_found:
        unwrap(subscription)
    return Landing(setup=True, subscription=subscription.data)


@router.get("/search", response_model=list[User])
async def search_users(
    user: CurrentUser,
    persistence: Persistence,
    email: str = Query(..., min_length=1),
) -> list[User]:
    """Find users by case-insensitive email prefix (collaborator search)."""
    users = unwrap(await persistence.search_users_by_email(email))
    return [u for u in users if u.id != user.id]


@router.get("/{user_id}", response_model=User)
async def get_user(user_id: str, user: CurrentUser, persistence: Persistence) -> User:
    return unwrap(await persistence.get_user(user_id))
