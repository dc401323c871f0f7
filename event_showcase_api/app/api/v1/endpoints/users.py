"""
User endpoints for API v1.

Registration and profile updates accept a free‑form JSON object; the
service filters it down to the allow‑listed fields before anything
is stored.  Reads return only ``id``, ``email`` and
``emailNotifications``.
"""

from fastapi import APIRouter, Body, Depends, HTTPException, status

from event_showcase_api.app.core.config import Settings
from event_showcase_api.app.core.security import CredentialHasher, get_current_user, get_hasher, get_settings
from event_showcase_api.app.schemas.user import UserRead
from event_showcase_api.app.services.user_service import UserService


router = APIRouter()


@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def register_user(
    body: dict = Body(...),
    settings: Settings = Depends(get_settings),
    hasher: CredentialHasher = Depends(get_hasher),
) -> UserRead:
    """Register a new user.

    Requires ``email`` and ``password``.  ``emailNotifications`` is
    optional and defaults to false.  Any other field is ignored.
    """
    try:
        return await UserService.create_user(settings, hasher, body)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e


@router.get("/me", response_model=UserRead)
async def read_current_user(
    current_user: int = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
) -> UserRead:
    """Return the account the bearer token belongs to."""
    user = await UserService.get_user(settings, current_user)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.get("/{user_id}", response_model=UserRead)
async def read_user(user_id: int, settings: Settings = Depends(get_settings)) -> UserRead:
    user = await UserService.get_user(settings, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.put("/{user_id}", response_model=UserRead)
async def update_user(
    user_id: int,
    body: dict = Body(...),
    current_user: int = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
    hasher: CredentialHasher = Depends(get_hasher),
) -> UserRead:
    """Update your own account.

    Only ``email``, ``password`` and ``emailNotifications`` can change.
    Leaving out ``password`` keeps the current one.
    """
    if current_user != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Cannot modify another user's account")
    try:
        return await UserService.update_user(settings, hasher, user_id, body)
    except ValueError as e:
        detail = str(e)
        code = status.HTTP_404_NOT_FOUND if detail.endswith("not found") else status.HTTP_400_BAD_REQUEST
        raise HTTPException(status_code=code, detail=detail) from e
