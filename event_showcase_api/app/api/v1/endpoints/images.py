"""
Image upload endpoint for API v1.

Clients upload each image before submitting the application that
uses it.  The response body is the temporary name to send back as
``tmpName`` in the application's ``images`` list.
"""

from fastapi import APIRouter, File, HTTPException, Request, UploadFile, status
from fastapi.responses import PlainTextResponse

from event_showcase_api.app.core.errors import UploadTooLarge


router = APIRouter()


@router.post("/images", response_class=PlainTextResponse)
async def upload_image(request: Request, file: UploadFile = File(...)) -> PlainTextResponse:
    store = request.app.state.image_store
    try:
        tmp_name = await store.save_upload(file.file, file.filename)
    except UploadTooLarge as e:
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=str(e)) from e
    finally:
        await file.close()
    return PlainTextResponse(tmp_name)
