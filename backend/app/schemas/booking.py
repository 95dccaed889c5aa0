"""
Pydantic schemas for booking-related request/response validation.
"""

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from app.schemas.property import PropertyResponse
from app.schemas.sanitize import DateStr


class BookingDatesUpdate(BaseModel):
    check_in_date: DateStr
    check_out_date: DateStr


class BookingCreate(BookingDatesUpdate):
    property_id: UUID


class BookingResponse(BaseModel):
    id: UUID
    user_id: UUID
    property_id: UUID
    check_in_date: date
    check_out_date: date
    total_price: float
    created_at: datetime
    property: Optional[PropertyResponse] = None

    model_config = {"from_attributes": True}


class BookingEnvelope(BaseModel):
    booking: BookingResponse


class BookingListResponse(BaseModel):
    bookings: list[BookingResponse]
