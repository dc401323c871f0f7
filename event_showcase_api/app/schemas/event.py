"""
Pydantic models for event data.

The ``EventBase`` class contains shared fields; ``EventCreate``
extends it for requests, and ``EventRead`` extends it with ``id`` and
``owner`` for responses.  The owner is never taken from the payload:
it is the authenticated caller at creation time.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class EventBase(BaseModel):
    title: str = Field(..., examples=["Open Data Hackathon"])
    description: Optional[str] = Field(None, examples=["Two days of building with public datasets"])
    location: Optional[str] = Field(None, examples=["Helsinki"])
    start_date: Optional[datetime] = Field(None, alias="startDate", examples=["2025-09-01T10:00:00Z"])
    end_date: Optional[datetime] = Field(None, alias="endDate", examples=["2025-09-02T18:00:00Z"])
    homepage: Optional[str] = None

    model_config = {
        "populate_by_name": True,
    }


class EventCreate(EventBase):
    """Schema for creating an event."""
    pass


class EventRead(EventBase):
    """Schema for reading an event from the API."""

    id: int
    owner: Optional[int] = None

    model_config = {
        "populate_by_name": True,
        "from_attributes": True,
    }


class EventUpdate(BaseModel):
    """Schema for updating an event.

    All fields are optional; only provided fields will be updated.
    """
    title: str | None = None
    description: str | None = None
    location: str | None = None
    start_date: datetime | None = Field(None, alias="startDate")
    end_date: datetime | None = Field(None, alias="endDate")
    homepage: str | None = None

    model_config = {
        "populate_by_name": True,
    }
