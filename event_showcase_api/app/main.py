"""
Main entrypoint for the Event Showcase API.

This module assembles the FastAPI application: it sets up logging,
builds the per‑process collaborators (credential hasher, mailer,
image store) from one ``Settings`` instance, mounts the static file
directory and includes the versioned router.  Run it with uvicorn,
e.g.::

    uvicorn event_showcase_api.app.main:app --reload

or through ``run.py <port> [--test]``.
"""

import logging
import sqlite3
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from .api.v1.router import router as v1_router
from .core.config import Settings
from .core.db import init_db
from .core.errors import PersistenceError
from .core.logging_config import setup_logging
from .core.security import CredentialHasher
from .services.image_store import ImageStore
from .services.notification_service import Mailer


ONE_DAY = 86400


class CachedStaticFiles(StaticFiles):
    """Static files served with a one day ``Cache-Control``."""

    def file_response(self, *args, **kwargs):
        response = super().file_response(*args, **kwargs)
        response.headers.setdefault("Cache-Control", f"public, max-age={ONE_DAY}")
        return response


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure a FastAPI application.

    Parameters
    ----------
    settings : Optional[Settings]
        Configuration to use.  Read from the environment when omitted.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.
    """
    settings = settings or Settings.from_env()
    setup_logging(settings)
    logger = logging.getLogger(__name__)

    app = FastAPI(title=settings.project_name, version=settings.api_version)
    app.state.settings = settings
    app.state.hasher = CredentialHasher(settings.secret_key)
    app.state.mailer = Mailer(settings)
    app.state.image_store = ImageStore(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # The directory is created at startup.
    app.mount(
        "/static",
        CachedStaticFiles(directory=settings.static_dir, check_dir=False),
        name="static",
    )
    app.include_router(v1_router)

    @app.exception_handler(PersistenceError)
    @app.exception_handler(sqlite3.Error)
    async def persistence_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Storage failure on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )

    @app.on_event("startup")
    async def startup_event() -> None:
        init_db(settings)
        settings.images_dir.mkdir(parents=True, exist_ok=True)
        Path(settings.upload_tmp_dir).mkdir(parents=True, exist_ok=True)
        logger.info(
            "%s started (%s database)",
            settings.project_name,
            "test" if settings.test_mode else "production",
        )

    return app


# Create the application instance at import time so that tools such as
# uvicorn can discover it without calling create_app manually.
app = create_app()
