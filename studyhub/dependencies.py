"""
FastAPI Dependencies

Common dependencies for caller identity and shared services.
"""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession

from studyhub.db.base import get_db
from studyhub.middleware.error_handling import NotFoundError
from studyhub.services.recommendation.locks import UserLockRegistry
from studyhub.services.recommendation.store import RecommendationStore

# Caller identity header; token verification happens upstream of this service
user_id_header = APIKeyHeader(name="X-User-Id", auto_error=False)


async def get_current_user_id(
    raw_user_id: str | None = Depends(user_id_header),
    db: AsyncSession = Depends(get_db),
) -> int:
    """
    Resolve the calling user from the X-User-Id header.

    Returns:
        int: The id of an existing user

    Raises:
        HTTPException: 401 if the header is missing or not an integer
        NotFoundError: If no user has that id
    """
    if not raw_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header",
        )

    try:
        user_id = int(raw_user_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid X-User-Id header",
        )

    if await RecommendationStore(db).get_user(user_id) is None:
        raise NotFoundError(f"User {user_id} not found")

    return user_id


def get_lock_registry(request: Request) -> UserLockRegistry:
    """Process-wide per-user generation locks stored on the app."""
    return request.app.state.recommendation_locks


# Dependency that can be used in routers
CurrentUserId = Depends(get_current_user_id)
