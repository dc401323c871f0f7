"""
Event endpoints for API v1.

Plain CRUD over events.  A new event is owned by the authenticated
caller, if any; later updates never change the owner.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from event_showcase_api.app.core.config import Settings
from event_showcase_api.app.core.security import get_optional_owner, get_settings
from event_showcase_api.app.schemas.event import EventCreate, EventRead, EventUpdate
from event_showcase_api.app.services.event_service import EventService


router = APIRouter()


@router.post("", response_model=EventRead, status_code=status.HTTP_201_CREATED)
async def create_event(
    event: EventCreate,
    owner: Optional[int] = Depends(get_optional_owner),
    settings: Settings = Depends(get_settings),
) -> EventRead:
    return await EventService.create_event(settings, event, owner)


@router.get("", response_model=List[EventRead])
async def list_events(
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    settings: Settings = Depends(get_settings),
) -> List[EventRead]:
    return await EventService.list_events(settings, limit=limit, offset=offset)


@router.get("/{event_id}", response_model=EventRead)
async def get_event(event_id: int, settings: Settings = Depends(get_settings)) -> EventRead:
    try:
        return await EventService.get_event(settings, event_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.put("/{event_id}", response_model=EventRead)
async def update_event(
    event_id: int,
    updates: EventUpdate,
    settings: Settings = Depends(get_settings),
) -> EventRead:
    """Update an existing event.

    Partial updates are supported; unspecified fields remain unchanged.
    """
    update_dict = updates.model_dump(exclude_unset=True)
    if update_dict.get("title", "") is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Title cannot be empty")
    try:
        return await EventService.update_event(settings, event_id, update_dict)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event(event_id: int, settings: Settings = Depends(get_settings)) -> None:
    try:
        await EventService.delete_event(settings, event_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return None
