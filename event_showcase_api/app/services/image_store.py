"""
Storage for application images.

Uploads land in the temporary upload directory under a generated
name.  When an application referencing them is written, the promotion
hook asks ``ImageStore`` to move each one into
``<static_dir>/images/<application id>/<name>``, where it is served
under ``/static``.  File operations run in worker threads so the event
loop is not blocked.
"""

import asyncio
import logging
import re
import secrets
import shutil
from pathlib import Path
from typing import BinaryIO, List, Optional
from urllib.parse import quote

from ..core.config import Settings
from ..core.errors import AssetIOError, UploadTooLarge
from ..schemas.application import ImageRef


CHUNK_SIZE = 64 * 1024
UPLOAD_SUFFIX = re.compile(r"\.[a-z0-9]+")


class ImageStore:
    """Temporary and permanent image storage."""

    def __init__(self, settings: Settings) -> None:
        self.tmp_dir = Path(settings.upload_tmp_dir)
        self.images_dir = settings.images_dir
        self.rest_uri = settings.rest_uri.rstrip("/")
        self.upload_limit = settings.file_upload_limit

    def public_url(self, application_id: int, name: str) -> str:
        return f"{self.rest_uri}/static/images/{application_id}/{quote(name)}"

    def application_dir(self, application_id: int) -> Path:
        return self.images_dir / str(application_id)

    # -- uploads ---------------------------------------------------------

    async def save_upload(self, fileobj: BinaryIO, filename: Optional[str]) -> str:
        """Store an uploaded file in the temp directory.

        Returns the generated temporary name.  Raises ``UploadTooLarge``
        (and keeps nothing) when the file exceeds the upload limit.
        """
        suffix = Path(filename or "").suffix.lower()
        if not UPLOAD_SUFFIX.fullmatch(suffix):
            suffix = ""
        tmp_name = f"{secrets.token_hex(16)}{suffix}"
        await asyncio.to_thread(self._write_upload, fileobj, self.tmp_dir / tmp_name)
        return tmp_name

    def _write_upload(self, fileobj: BinaryIO, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        size = 0
        try:
            with open(path, "wb") as buffer:
                while chunk := fileobj.read(CHUNK_SIZE):
                    size += len(chunk)
                    if size > self.upload_limit:
                        raise UploadTooLarge(f"Upload exceeds {self.upload_limit} bytes")
                    buffer.write(chunk)
        except BaseException:
            path.unlink(missing_ok=True)
            raise

    # -- promotion -------------------------------------------------------

    async def promote(self, application_id: int, image: ImageRef) -> str:
        """Return the permanent URL for ``image``, moving it if needed.

        ``{src}`` entries are returned unchanged.  An image already
        stored under the same name is kept, and the new one gets a
        numbered name instead.  Raises ``AssetIOError`` when the
        temporary file cannot be moved.
        """
        if not image.is_upload:
            return image.src
        source = self.tmp_dir / image.tmp_name
        target = self.application_dir(application_id) / image.name
        try:
            stored = await asyncio.to_thread(self._move, source, target)
        except OSError as e:
            raise AssetIOError(
                f"Could not promote {image.tmp_name} to {target}: {e}"
            ) from e
        logging.getLogger(__name__).info(
            "Promoted image %s for application %s as %s", image.name, application_id, stored.name
        )
        return self.public_url(application_id, stored.name)

    @staticmethod
    def _move(source: Path, target: Path) -> Path:
        if not source.is_file():
            raise FileNotFoundError(f"no uploaded file {source.name}")
        target.parent.mkdir(parents=True, exist_ok=True)
        candidate = target
        counter = 1
        while candidate.exists():
            candidate = target.with_name(f"{target.stem}-{counter}{target.suffix}")
            counter += 1
        shutil.move(str(source), str(candidate))
        return candidate

    async def promote_all(self, application_id: int, images: List[ImageRef]) -> List[str]:
        """Promote every image concurrently and wait for all of them.

        The result keeps the submitted order.  Images that fail are
        logged and left out.
        """
        logger = logging.getLogger(__name__)
        results = await asyncio.gather(
            *(self.promote(application_id, image) for image in images),
            return_exceptions=True,
        )
        urls: List[str] = []
        for image, result in zip(images, results):
            if isinstance(result, Exception):
                logger.error(
                    "Dropping image %s of application %s: %s",
                    image.name or image.src,
                    application_id,
                    result,
                )
                continue
            if isinstance(result, BaseException):
                raise result
            urls.append(result)
        return urls

    async def remove_application_images(self, application_id: int) -> None:
        await asyncio.to_thread(shutil.rmtree, self.application_dir(application_id), True)
