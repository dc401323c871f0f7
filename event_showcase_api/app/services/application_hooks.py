"""
Post‑processing for application writes.

These hooks run as background tasks once the create/update of an
application has produced its response.  Nothing they do can change
that response: every failure is logged and swallowed here.

* ``after_post_application`` notifies the connected event's owner,
  then promotes uploaded images.
* ``after_put_application`` promotes uploaded images.
"""

import logging
from typing import List, Optional

from ..core.config import Settings
from ..core.errors import NotificationError
from ..schemas.application import ApplicationRead, ImageRef
from .application_service import ApplicationService
from .event_service import EventService
from .image_store import ImageStore
from .notification_service import Mailer
from .user_service import UserService


async def notify_event_owner(settings: Settings, mailer: Mailer, application: ApplicationRead) -> bool:
    """Mail the owner of the connected event about an unpublished application.

    Returns ``True`` when a message was handed to the mailer.  A
    published application, a missing event, an event without owner or
    an owner who opted out of e‑mails all end quietly with ``False``.
    """
    logger = logging.getLogger(__name__)
    if application.published or application.connected_event is None:
        return False
    try:
        event = await EventService.get_event(settings, application.connected_event)
    except ValueError:
        logger.debug("Application %s points at missing event %s", application.id, application.connected_event)
        return False
    if event.owner is None:
        return False
    owner = await UserService.get_user(settings, event.owner)
    if owner is None or not owner.email_notifications:
        return False
    return await mailer.send_notification(owner.email, application.title, event.title)


async def promote_images(
    settings: Settings,
    store: ImageStore,
    application_id: int,
    images: Optional[List[ImageRef]],
) -> Optional[List[str]]:
    """Move uploaded images into permanent storage and save the final list.

    The record is saved only after every image has been handled.
    Returns the stored list, or ``None`` when there was nothing to do.
    """
    if images is None:
        return None
    urls = await store.promote_all(application_id, images)
    try:
        await ApplicationService.set_images(settings, application_id, urls)
    except ValueError:
        logging.getLogger(__name__).warning(
            "Application %s disappeared before its images were saved", application_id
        )
        return None
    return urls


async def after_post_application(
    settings: Settings,
    mailer: Mailer,
    store: ImageStore,
    application: ApplicationRead,
    images: List[ImageRef],
) -> None:
    logger = logging.getLogger(__name__)
    try:
        await notify_event_owner(settings, mailer, application)
    except NotificationError:
        logger.exception("Notification for application %s failed", application.id)
    except Exception:
        logger.exception("Unexpected error while notifying about application %s", application.id)
    await after_put_application(settings, store, application, images)


async def after_put_application(
    settings: Settings,
    store: ImageStore,
    application: ApplicationRead,
    images: Optional[List[ImageRef]],
) -> None:
    try:
        await promote_images(settings, store, application.id, images)
    except Exception:
        logging.getLogger(__name__).exception(
            "Image promotion for application %s failed", application.id
        )
