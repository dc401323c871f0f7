"""
Application endpoints for API v1.

CRUD over applications.  Creating an application schedules
``after_post_application`` (owner notification, then image
promotion); updating one schedules ``after_put_application`` (image
promotion).  Both run after the response has been produced, so the
returned record only lists images that already had a permanent URL.
"""

from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request, status

from event_showcase_api.app.core.config import Settings
from event_showcase_api.app.core.security import get_optional_owner, get_settings
from event_showcase_api.app.schemas.application import ApplicationCreate, ApplicationRead, ApplicationUpdate
from event_showcase_api.app.services.application_hooks import after_post_application, after_put_application
from event_showcase_api.app.services.application_service import ApplicationService


router = APIRouter()


@router.post("", response_model=ApplicationRead, status_code=status.HTTP_201_CREATED)
async def create_application(
    data: ApplicationCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    owner: Optional[int] = Depends(get_optional_owner),
    settings: Settings = Depends(get_settings),
) -> ApplicationRead:
    application = await ApplicationService.create_application(settings, data, owner)
    background_tasks.add_task(
        after_post_application,
        settings,
        request.app.state.mailer,
        request.app.state.image_store,
        application,
        data.images,
    )
    return application


@router.get("", response_model=List[ApplicationRead])
async def list_applications(
    connected_event: Optional[int] = Query(None, alias="connectedEvent"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    settings: Settings = Depends(get_settings),
) -> List[ApplicationRead]:
    return await ApplicationService.list_applications(
        settings, connected_event=connected_event, limit=limit, offset=offset
    )


@router.get("/{application_id}", response_model=ApplicationRead)
async def get_application(application_id: int, settings: Settings = Depends(get_settings)) -> ApplicationRead:
    try:
        return await ApplicationService.get_application(settings, application_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.put("/{application_id}", response_model=ApplicationRead)
async def update_application(
    application_id: int,
    data: ApplicationUpdate,
    request: Request,
    background_tasks: BackgroundTasks,
    settings: Settings = Depends(get_settings),
) -> ApplicationRead:
    try:
        application = await ApplicationService.update_application(settings, application_id, data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    background_tasks.add_task(
        after_put_application,
        settings,
        request.app.state.image_store,
        application,
        data.images,
    )
    return application


@router.delete("/{application_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_application(
    application_id: int,
    request: Request,
    settings: Settings = Depends(get_settings),
) -> None:
    """Delete an application together with its promoted images."""
    try:
        await ApplicationService.delete_application(settings, application_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    await request.app.state.image_store.remove_application_images(application_id)
    return None
