"""
Booking service: date validation, overlap prevention and pricing.

OVERLAP STRATEGY: Friendly pre-check, authoritative constraint
==============================================================

Rules for a stay [check_in, check_out):
  1. The user has no other booking overlapping it (any property)
  2. The property has no other booking overlapping it
  3. The user has no other booking in the Monday-Sunday week(s) holding
     its nights (one booking per week)

The checks below are read-then-write and therefore racy: two requests for
the same property can both pass rule 2 before either commits. The real
guarantee for rule 2 is the `bookings_no_overlap_per_property` exclusion
constraint in PostgreSQL. The pre-check only exists to give a specific
message; a constraint violation at insert/update time is translated to the
same DateConflict.

On update the booking being edited is excluded from every check.
"""

from datetime import date
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import (
    AppError,
    DateConflict,
    Forbidden,
    InvalidDateRange,
    NotFound,
    SelfBookingForbidden,
    UpstreamError,
)
from app.core.logging import get_logger
from app.core.metrics import record_booking_attempt
from app.models.booking import Booking, OVERLAP_CONSTRAINT_NAME
from app.models.property import Property
from app.schemas.booking import BookingCreate, BookingDatesUpdate
from app.services.availability import DateRange, find_overlap, week_window
from app.services.pricing import as_date, calc_total_price

logger = get_logger(__name__)

USER_OVERLAP_MESSAGE = "You already have a booking that overlaps these dates."
PROPERTY_OVERLAP_MESSAGE = "The dates are already booked for this property."
WEEKLY_LIMIT_MESSAGE = "You already have a booking in the same week."

# exclusion_violation, unique_violation
_CONFLICT_SQLSTATES = {"23P01", "23505"}
_CONFLICT_MARKERS = (OVERLAP_CONSTRAINT_NAME, "overlap", "prevent_booking_overlap")


def validate_stay(check_in_date: str, check_out_date: str, today: Optional[date] = None) -> DateRange:
    """Parse and check a requested stay: no past check-in, check-out after check-in."""
    check_in = as_date(check_in_date)
    check_out = as_date(check_out_date)
    if check_in < (today or date.today()):
        raise InvalidDateRange("You cannot book dates that have already passed.")
    if check_out <= check_in:
        raise InvalidDateRange("Check-out date must be after check-in date.")
    return DateRange(check_in, check_out)


def is_overlap_violation(error: IntegrityError) -> bool:
    orig = error.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate in _CONFLICT_SQLSTATES:
        return True
    message = str(orig)
    return any(marker in message for marker in _CONFLICT_MARKERS)


async def _overlapping_bookings(db: AsyncSession, window: DateRange, **filters) -> list[Booking]:
    query = select(Booking).where(
        Booking.check_out_date > window.start,
        Booking.check_in_date < window.end,
    )
    for column, value in filters.items():
        query = query.where(getattr(Booking, column) == value)
    result = await db.execute(query)
    return list(result.scalars().all())


async def ensure_no_conflicts(
    db: AsyncSession,
    user_id: UUID,
    property_id: UUID,
    stay: DateRange,
    exclude_booking_id: Optional[UUID] = None,
) -> None:
    """Run the user-range, property-range and user-week checks in that order."""
    week = week_window(stay.start, stay.end)
    # The week window contains the stay, so one query serves both user checks
    user_nearby = await _overlapping_bookings(db, week, user_id=user_id)

    if find_overlap(stay, user_nearby, exclude_booking_id):
        raise DateConflict(USER_OVERLAP_MESSAGE)

    on_property = await _overlapping_bookings(db, stay, property_id=property_id)
    if find_overlap(stay, on_property, exclude_booking_id):
        raise DateConflict(PROPERTY_OVERLAP_MESSAGE)

    if find_overlap(week, user_nearby, exclude_booking_id):
        raise DateConflict(WEEKLY_LIMIT_MESSAGE)


async def _load_booking(db: AsyncSession, booking_id: UUID) -> Optional[Booking]:
    result = await db.execute(
        select(Booking)
        .where(Booking.id == booking_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def _save_booking(db: AsyncSession, booking: Booking, operation: str, **changes) -> Booking:
    """Apply `changes` and write inside a savepoint, translating storage conflicts into DateConflict."""
    try:
        async with db.begin_nested():
            for field, value in changes.items():
                setattr(booking, field, value)
            db.add(booking)
    except IntegrityError as e:
        if is_overlap_violation(e):
            logger.info("booking_constraint_conflict", operation=operation, property_id=str(booking.property_id))
            raise DateConflict(PROPERTY_OVERLAP_MESSAGE)
        logger.error("booking_write_failed", operation=operation, error=str(e.orig))
        raise UpstreamError(str(e.orig))
    except SQLAlchemyError as e:
        logger.error("booking_write_failed", operation=operation, error=str(e))
        raise UpstreamError("Could not save booking", status_code=500)

    return await _load_booking(db, booking.id)


def _outcome(error: AppError) -> str:
    return "conflict" if isinstance(error, DateConflict) else "rejected"


async def create_booking(db: AsyncSession, user_id: UUID, data: BookingCreate) -> Booking:
    """
    Book a property for [check_in_date, check_out_date).

    Order: date validation, property lookup, self-booking guard, overlap
    checks, price, insert.
    """
    try:
        stay = validate_stay(data.check_in_date, data.check_out_date)

        prop = await db.get(Property, data.property_id)
        if not prop:
            raise NotFound("Property not found")
        if prop.owner_id == user_id:
            raise SelfBookingForbidden()

        await ensure_no_conflicts(db, user_id, prop.id, stay)

        booking = Booking(
            user_id=user_id,
            property_id=prop.id,
            check_in_date=stay.start,
            check_out_date=stay.end,
            total_price=calc_total_price(prop.price_per_night, stay.start, stay.end),
        )
        booking = await _save_booking(db, booking, "create")
    except UpstreamError:
        record_booking_attempt("create", "error")
        raise
    except AppError as e:
        record_booking_attempt("create", _outcome(e))
        logger.info("booking_rejected", user_id=str(user_id), property_id=str(data.property_id), reason=e.message)
        raise

    record_booking_attempt("create", "success")
    logger.info(
        "booking_created",
        booking_id=str(booking.id),
        user_id=str(user_id),
        property_id=str(booking.property_id),
        check_in=str(booking.check_in_date),
        check_out=str(booking.check_out_date),
        total_price=str(booking.total_price),
    )
    return booking


async def update_booking_dates(
    db: AsyncSession,
    booking_id: UUID,
    user_id: UUID,
    data: BookingDatesUpdate,
) -> Booking:
    """Move an own booking to new dates, re-running every check and repricing."""
    booking = await _load_booking(db, booking_id)
    if not booking:
        raise NotFound("Booking not found")
    if booking.user_id != user_id:
        logger.warning("booking_access_denied", booking_id=str(booking_id), user_id=str(user_id))
        raise Forbidden("You are not allowed to change this booking.")

    try:
        stay = validate_stay(data.check_in_date, data.check_out_date)

        prop = await db.get(Property, booking.property_id)
        if not prop:
            raise UpstreamError("The property for this booking is missing.")

        await ensure_no_conflicts(db, user_id, prop.id, stay, exclude_booking_id=booking.id)

        booking = await _save_booking(
            db,
            booking,
            "update",
            check_in_date=stay.start,
            check_out_date=stay.end,
            total_price=calc_total_price(prop.price_per_night, stay.start, stay.end),
        )
    except UpstreamError:
        record_booking_attempt("update", "error")
        raise
    except AppError as e:
        record_booking_attempt("update", _outcome(e))
        logger.info("booking_update_rejected", booking_id=str(booking_id), reason=e.message)
        raise

    record_booking_attempt("update", "success")
    logger.info(
        "booking_updated",
        booking_id=str(booking.id),
        check_in=str(booking.check_in_date),
        check_out=str(booking.check_out_date),
        total_price=str(booking.total_price),
    )
    return booking


async def delete_booking(db: AsyncSession, booking_id: UUID, user_id: UUID) -> None:
    booking = await _load_booking(db, booking_id)
    if not booking:
        raise NotFound("Booking not found")
    if booking.user_id != user_id:
        logger.warning("booking_access_denied", booking_id=str(booking_id), user_id=str(user_id))
        raise Forbidden("You are not allowed to delete this booking.")

    await db.delete(booking)
    await db.flush()
    logger.info("booking_deleted", booking_id=str(booking_id), user_id=str(user_id))


async def get_user_booking(db: AsyncSession, booking_id: UUID, user_id: UUID) -> Booking:
    """A single booking of the caller; someone else's booking reads as missing."""
    result = await db.execute(
        select(Booking).where(Booking.id == booking_id, Booking.user_id == user_id)
    )
    booking = result.scalar_one_or_none()
    if not booking:
        raise NotFound("Booking not found")
    return booking


async def get_user_bookings(db: AsyncSession, user_id: UUID) -> list[Booking]:
    """All bookings of a user with their properties, newest first."""
    result = await db.execute(
        select(Booking)
        .where(Booking.user_id == user_id)
        .order_by(Booking.created_at.desc())
    )
    return list(result.scalars().all())
