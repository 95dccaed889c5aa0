"""
Pydantic schemas for property listing request/response validation.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, HttpUrl, field_validator

from app.schemas.sanitize import NameStr


class PropertyCreate(BaseModel):
    name: NameStr
    description: Optional[str] = None
    location: NameStr
    price_per_night: float = Field(..., gt=0)
    availability: bool = True
    image_url: Optional[HttpUrl] = None


class PropertyPatch(BaseModel):
    """Partial update: only the fields present in the request body are applied."""

    name: Optional[NameStr] = None
    description: Optional[str] = None
    location: Optional[NameStr] = None
    price_per_night: Optional[float] = Field(None, gt=0)
    availability: Optional[bool] = None
    image_url: Optional[HttpUrl] = None

    @field_validator("name", "location", "price_per_night", "availability", mode="before")
    @classmethod
    def _not_null(cls, value):
        # May be omitted, but not cleared
        if value is None:
            raise ValueError("Field cannot be null")
        return value


class PropertyResponse(BaseModel):
    id: UUID
    owner_id: UUID
    name: str
    description: Optional[str]
    location: Optional[str]
    price_per_night: float
    availability: bool
    image_url: Optional[str]
    created_at: datetime

    model_config = {"from_attributes": True}


class PropertyEnvelope(BaseModel):
    property: PropertyResponse


class PropertyListResponse(BaseModel):
    properties: list[PropertyResponse]


class PropertyDeleteResponse(BaseModel):
    ok: bool = True
    message: str


class BookedScope(BaseModel):
    from_: str = Field(..., alias="from")
    to: str

    model_config = {"populate_by_name": True}


class IsBookedResponse(BaseModel):
    is_booked: bool
    count: int
    scope: Optional[BookedScope] = None


class UploadImageResponse(BaseModel):
    url: str
