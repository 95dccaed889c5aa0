"""
Booking endpoints. All require a session; callers only ever see their own bookings.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user_id
from app.db.session import get_db
from app.schemas.booking import BookingCreate, BookingDatesUpdate, BookingEnvelope, BookingListResponse
from app.schemas.user import OkResponse
from app.services.booking_service import (
    create_booking,
    delete_booking,
    get_user_booking,
    get_user_bookings,
    update_booking_dates,
)

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.get("", response_model=BookingListResponse)
async def list_user_bookings(
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """All bookings of the authenticated user with their properties, newest first."""
    bookings = await get_user_bookings(db, user_id)
    return {"bookings": bookings}


@router.get("/{booking_id}", response_model=BookingEnvelope)
async def get_booking_endpoint(
    booking_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """A single own booking. Other users' bookings read as 404."""
    booking = await get_user_booking(db, booking_id, user_id)
    return {"booking": booking}


@router.post("", response_model=BookingEnvelope, status_code=status.HTTP_201_CREATED)
async def create_booking_endpoint(
    booking_data: BookingCreate,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """
    Book a property for a date range.

    Rejects past or inverted ranges, the caller's own property, and ranges
    clashing with the caller's bookings (same dates or same week) or with the
    property's bookings.
    """
    booking = await create_booking(db, user_id, booking_data)
    return {"booking": booking}


@router.patch("/{booking_id}", response_model=BookingEnvelope)
async def update_booking_endpoint(
    booking_id: UUID,
    dates: BookingDatesUpdate,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Change the dates of an own booking; all checks run again and the price is recomputed."""
    booking = await update_booking_dates(db, booking_id, user_id, dates)
    return {"booking": booking}


@router.delete("/{booking_id}", response_model=OkResponse)
async def delete_booking_endpoint(
    booking_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    await delete_booking(db, booking_id, user_id)
    return OkResponse()
