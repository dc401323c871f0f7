"""
Application package initializer.

The API is organised by layer: ``core`` (configuration, storage,
security), ``schemas`` (request/response models), ``services``
(business logic and post‑write hooks) and ``api/v1/endpoints`` (one
router per resource: events, applications, users, login, images).
"""

from .main import app, create_app  # noqa: F401
