"""
Login endpoint for API v1.

``POST /login`` takes ``{"email", "password"}`` as JSON or as a
url‑encoded form and answers with the new access token as a plain‑text
body.  Every kind of failure, an unparsable body included, gets the
same ``400 wrong password`` so the response does not reveal whether an
account exists or what was wrong with the input.
"""

import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError

from event_showcase_api.app.core.config import Settings
from event_showcase_api.app.core.security import CredentialHasher, get_hasher, get_settings
from event_showcase_api.app.schemas.user import LoginRequest
from event_showcase_api.app.services.user_service import UserService


router = APIRouter()

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


async def read_credentials(request: Request) -> Optional[LoginRequest]:
    """Parse the request body into ``LoginRequest``, or ``None`` if it is unusable."""
    try:
        if request.headers.get("content-type", "").startswith(FORM_CONTENT_TYPE):
            payload = dict(await request.form())
        else:
            raw = await request.body()
            payload = json.loads(raw) if raw else {}
        return LoginRequest.model_validate(payload)
    except (ValueError, ValidationError) as e:
        logging.getLogger(__name__).info("Rejected malformed login body: %s", type(e).__name__)
        return None


@router.post("/login", response_class=PlainTextResponse)
async def login(
    request: Request,
    settings: Settings = Depends(get_settings),
    hasher: CredentialHasher = Depends(get_hasher),
) -> PlainTextResponse:
    credentials = await read_credentials(request)
    token = None
    if credentials is not None:
        token = await UserService.login(settings, hasher, credentials.email, credentials.password)
    if token is None:
        return PlainTextResponse("wrong password", status_code=status.HTTP_400_BAD_REQUEST)
    return PlainTextResponse(token)
