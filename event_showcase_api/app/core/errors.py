"""
Exception types shared by the service layer.

Request‑path problems that map directly to an HTTP status (bad
credentials, missing records) are raised as ``ValueError`` or
``HTTPException`` where they occur.  The classes here cover failures
that either need a dedicated handler (``PersistenceError``) or never
reach the client at all because they happen after the response was
produced (``AssetIOError``, ``NotificationError``).
"""


class PersistenceError(Exception):
    """A storage operation failed; surfaced to clients as HTTP 500."""


class AssetIOError(Exception):
    """Moving an uploaded image into permanent storage failed."""


class NotificationError(Exception):
    """A notification e‑mail could not be delivered."""


class UploadTooLarge(ValueError):
    """An uploaded file exceeded ``Settings.file_upload_limit``."""
