"""
Pydantic schemas for applications (submissions to an event).

On the way in, every image is an ``ImageRef``: either ``{"src": url}``
for an image that already lives in permanent storage, or
``{"tmpName": ..., "name": ...}`` for a file that was just uploaded
through ``POST /images`` and still sits in the temporary upload
directory.  On the way out, ``images`` is a plain list of URLs.
"""

import os
import re
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


# Shape of the names ``ImageStore.save_upload`` generates.
TMP_NAME_PATTERN = re.compile(r"[0-9a-f]{32}(\.[a-z0-9]+)?")


def unique_upload_names(images: Optional[List["ImageRef"]]) -> Optional[List["ImageRef"]]:
    """Reject two uploads that would be stored under the same name."""
    if images is None:
        return images
    names = [image.name for image in images if image.is_upload]
    duplicates = sorted({name for name in names if names.count(name) > 1})
    if duplicates:
        raise ValueError(f"duplicate image names: {', '.join(duplicates)}")
    return images


class Dataset(BaseModel):
    url: Optional[str] = None
    description: Optional[str] = None


class Author(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None


class ImageRef(BaseModel):
    """An image entry as submitted by the client."""

    src: Optional[str] = None
    tmp_name: Optional[str] = Field(None, alias="tmpName")
    name: Optional[str] = None

    model_config = {
        "populate_by_name": True,
    }

    @field_validator("tmp_name")
    @classmethod
    def generated_upload_name(cls, v: Optional[str]) -> Optional[str]:
        """Only names handed out by ``POST /images`` can be promoted."""
        if v is not None and not TMP_NAME_PATTERN.fullmatch(v):
            raise ValueError("unknown upload name")
        return v

    @field_validator("name")
    @classmethod
    def plain_file_name(cls, v: Optional[str]) -> Optional[str]:
        """Reject anything that is not a bare file name.

        The value ends up in a filesystem path, so separators and
        relative components are not allowed.
        """
        if v is None:
            return v
        if v in {"", ".", ".."} or os.path.basename(v) != v or "\\" in v:
            raise ValueError("must be a plain file name")
        return v

    @model_validator(mode="after")
    def src_or_upload(self) -> "ImageRef":
        if not self.src and not (self.tmp_name and self.name):
            raise ValueError("image needs either 'src' or both 'tmpName' and 'name'")
        return self

    @property
    def is_upload(self) -> bool:
        return not self.src


class ApplicationBase(BaseModel):
    title: Optional[str] = Field(None, examples=["Air quality map"])
    text: Optional[str] = None
    homepage: Optional[str] = None
    download_url: Optional[str] = Field(None, alias="downloadUrl")
    connected_event: Optional[int] = Field(None, alias="connectedEvent")
    published: bool = False
    datasets: List[Dataset] = Field(default_factory=list)
    authors: List[Author] = Field(default_factory=list)

    model_config = {
        "populate_by_name": True,
    }


class ApplicationCreate(ApplicationBase):
    """Schema for submitting an application."""

    images: List[ImageRef] = Field(default_factory=list)

    @field_validator("images")
    @classmethod
    def unique_images(cls, v):
        return unique_upload_names(v)


class ApplicationUpdate(BaseModel):
    """Schema for updating an application.

    All fields are optional.  When ``images`` is omitted the stored
    list is left alone and no promotion happens.
    """

    title: Optional[str] = None
    text: Optional[str] = None
    homepage: Optional[str] = None
    download_url: Optional[str] = Field(None, alias="downloadUrl")
    connected_event: Optional[int] = Field(None, alias="connectedEvent")
    published: Optional[bool] = None
    datasets: Optional[List[Dataset]] = None
    authors: Optional[List[Author]] = None
    images: Optional[List[ImageRef]] = None

    @field_validator("images")
    @classmethod
    def unique_images(cls, v):
        return unique_upload_names(v)

    model_config = {
        "populate_by_name": True,
    }


class ApplicationRead(ApplicationBase):
    """Schema for reading an application from the API."""

    id: int
    images: List[str] = Field(default_factory=list)
    owner: Optional[int] = None

    model_config = {
        "populate_by_name": True,
        "from_attributes": True,
    }
