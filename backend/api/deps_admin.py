"""
Admin authentication dependencies.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, status

from api.dependencies import get_current_user
from infrastructure.database.models import Profile


async def get_current_admin_user(
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> Profile:
    """
    Dependency to verify current user is an admin.

    Raises:
        HTTPException: 403 if the profile does not have the admin role
    """
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden",
        )
    return current_user
