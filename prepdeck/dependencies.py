"""
Dependency injection system.

Copyright (C) 2025 Prepdeck
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated, Any

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from .config import Settings, get_settings
from .core.database import get_db_client
from .core.security import decode_access_token
from .services.goal_service import GoalService
from .services.goal_store import PrismaGoalStore
from .services.hierarchy_service import PrismaHierarchyAccessor
from .utils.exceptions import UnauthorizedError

if TYPE_CHECKING:
    from prisma import Prisma

# Common dependencies
SettingsDep = Annotated[Settings, Depends(get_settings)]

# Database dependency; typed loosely so route signatures do not import prisma
DBDep = Annotated[Any, Depends(get_db_client)]

# auto_error=False so a missing header goes through UnauthorizedError
# and gets the standard error body
security = HTTPBearer(auto_error=False)


async def get_current_user_id(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> str:
    """
    Validate the bearer token and return the owner id carried in ``sub``.

    The goal engine never reads this itself; routes pass it on explicitly.
    """
    if credentials is None:
        raise UnauthorizedError()

    try:
        payload = decode_access_token(credentials.credentials)
    except JWTError as e:
        raise UnauthorizedError("Could not validate credentials", detail=str(e)) from e

    owner_id = payload.get("sub")
    if not owner_id:
        raise UnauthorizedError("Could not validate credentials", detail="Token has no subject")
    return owner_id


# Create a reusable type shortcut
CurrentUserId = Annotated[str, Depends(get_current_user_id)]


def get_goal_service(db: DBDep, settings: SettingsDep) -> GoalService:
    """Wire the goal service to the Prisma-backed store and hierarchy."""
    prisma: Prisma = db
    return GoalService(
        store=PrismaGoalStore(prisma),
        hierarchy=PrismaHierarchyAccessor(prisma),
        settings=settings,
    )


GoalServiceDep = Annotated[GoalService, Depends(get_goal_service)]
