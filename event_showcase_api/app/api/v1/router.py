"""
Top‑level router for version 1 of the API.

This router aggregates the domain routers.  Token checks live on the
individual routes that record or require an owner, so login,
registration and plain reads work regardless of what ``Authorization``
header a client still sends.
"""

from fastapi import APIRouter

from .endpoints import applications, auth, events, images, users


router = APIRouter()

router.include_router(events.router, prefix="/events", tags=["events"])
router.include_router(applications.router, prefix="/applications", tags=["applications"])
router.include_router(users.router, prefix="/users", tags=["users"])
# Login and upload define their own single paths.
router.include_router(auth.router, tags=["auth"])
router.include_router(images.router, tags=["images"])
