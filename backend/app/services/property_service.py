"""
Property service: listing CRUD, ownership enforcement, duplicate detection
and the lifecycle of uploaded listing images.
"""

import re
from datetime import date
from typing import Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.errors import (
    DuplicateListing, Forbidden, InvalidDateRange, NotFound, UpstreamError, ValidationFailed,
)
from app.core.logging import get_logger
from app.core.metrics import record_image_cleanup_failure
from app.models.booking import Booking
from app.models.property import Property
from app.schemas.property import BookedScope, IsBookedResponse, PropertyCreate, PropertyPatch
from app.services.availability import DateRange
from app.services.interfaces.storage import ObjectAlreadyExists, ObjectStorage, StorageError
from app.services.pricing import as_date

logger = get_logger(__name__)
settings = get_settings()

_UNSAFE_FILENAME_CHARS = re.compile(r"[^\w.\-]")


def _normalized(value: Optional[str]) -> str:
    return (value or "").strip().lower()


async def _discard_image(
    storage: ObjectStorage,
    image_url: Optional[str],
    auth_user_id: str,
    reason: str,
) -> None:
    """
    Best-effort removal of a stored image; failures are logged, never raised.

    Only objects inside the caller's own `<auth_user_id>/` folder are removed.
    """
    path = storage.path_from_url(image_url)
    if not path:
        if image_url:
            logger.warning("image_path_unresolved", image_url=image_url, reason=reason)
        return
    if not path.startswith(f"{auth_user_id}/"):
        logger.warning("image_remove_skipped", path=path, auth_user_id=auth_user_id, reason=reason)
        return
    try:
        await storage.remove([path])
        logger.info("image_removed", path=path, reason=reason)
    except StorageError as e:
        record_image_cleanup_failure(reason)
        logger.warning("image_remove_failed", path=path, reason=reason, error=str(e))


async def list_properties(db: AsyncSession) -> list[Property]:
    result = await db.execute(select(Property).order_by(Property.created_at.desc()))
    return list(result.scalars().all())


async def list_owned_properties(db: AsyncSession, owner_id: UUID) -> list[Property]:
    result = await db.execute(
        select(Property)
        .where(Property.owner_id == owner_id)
        .order_by(Property.created_at.desc())
    )
    return list(result.scalars().all())


async def list_bookable_properties(db: AsyncSession, user_id: UUID) -> list[Property]:
    """Available listings owned by someone else."""
    result = await db.execute(
        select(Property)
        .where(Property.owner_id != user_id, Property.availability.is_(True))
        .order_by(Property.created_at.desc())
    )
    return list(result.scalars().all())


async def get_property(db: AsyncSession, property_id: UUID) -> Property:
    prop = await db.get(Property, property_id)
    if not prop:
        raise NotFound("Property not found")
    return prop


async def _get_owned_property(db: AsyncSession, property_id: UUID, user_id: UUID) -> Property:
    prop = await get_property(db, property_id)
    if prop.owner_id != user_id:
        logger.warning("property_access_denied", property_id=str(property_id), user_id=str(user_id))
        raise Forbidden()
    return prop


async def create_property(
    db: AsyncSession,
    storage: ObjectStorage,
    owner_id: UUID,
    auth_user_id: str,
    data: PropertyCreate,
) -> Property:
    """
    Create a listing for `owner_id`.

    A listing whose trimmed, case-insensitive name or image URL matches one
    of the owner's existing listings is a duplicate. The candidate's image was
    uploaded before this call, so it is removed whenever the listing is not
    created, unless an existing listing already uses it.
    """
    values = data.model_dump(mode="json")
    image_url = values.get("image_url")
    name_key = _normalized(values["name"])
    image_key = _normalized(image_url)

    existing = await db.execute(
        select(Property.name, Property.image_url).where(Property.owner_id == owner_id)
    )
    rows = existing.all()
    name_taken = any(_normalized(name) == name_key for name, _ in rows)
    image_in_use = bool(image_key) and any(_normalized(url) == image_key for _, url in rows)
    if name_taken or image_in_use:
        logger.info(
            "property_duplicate_rejected",
            owner_id=str(owner_id),
            name=values["name"],
            image_in_use=image_in_use,
        )
        # An image another listing shows is not the candidate's to remove
        if not image_in_use:
            await _discard_image(storage, image_url, auth_user_id, reason="duplicate")
        raise DuplicateListing()

    prop = Property(owner_id=owner_id, **values)
    try:
        async with db.begin_nested():
            db.add(prop)
    except IntegrityError as e:
        logger.warning("property_insert_conflict", owner_id=str(owner_id), error=str(e.orig))
        await _discard_image(storage, image_url, auth_user_id, reason="insert_failed")
        raise DuplicateListing()
    except SQLAlchemyError as e:
        logger.error("property_insert_failed", owner_id=str(owner_id), error=str(e))
        await _discard_image(storage, image_url, auth_user_id, reason="insert_failed")
        raise UpstreamError("Could not create property")

    await db.refresh(prop)
    logger.info("property_created", property_id=str(prop.id), owner_id=str(owner_id))
    return prop


async def update_property(
    db: AsyncSession,
    property_id: UUID,
    user_id: UUID,
    patch: PropertyPatch,
) -> Property:
    prop = await _get_owned_property(db, property_id, user_id)

    changes = patch.model_dump(mode="json", exclude_unset=True)
    try:
        async with db.begin_nested():
            for field, value in changes.items():
                setattr(prop, field, value)
    except IntegrityError as e:
        logger.warning("property_update_conflict", property_id=str(property_id), error=str(e.orig))
        raise DuplicateListing()

    await db.refresh(prop)
    logger.info("property_updated", property_id=str(property_id), fields=sorted(changes))
    return prop


async def delete_property(
    db: AsyncSession,
    storage: ObjectStorage,
    property_id: UUID,
    user_id: UUID,
    auth_user_id: str,
) -> None:
    """Delete the listing, then its image. The image removal never fails the delete."""
    prop = await _get_owned_property(db, property_id, user_id)
    image_url = prop.image_url

    await db.delete(prop)
    await db.flush()
    logger.info("property_deleted", property_id=str(property_id), owner_id=str(user_id))

    if not image_url:
        return
    still_used = await db.execute(
        select(func.count(Property.id)).where(Property.image_url == image_url)
    )
    if still_used.scalar_one():
        logger.info("image_kept", image_url=image_url, reason="in_use")
        return
    await _discard_image(storage, image_url, auth_user_id, reason="property_deleted")


async def get_booked_status(
    db: AsyncSession,
    property_id: UUID,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
) -> IsBookedResponse:
    """
    Whether the property has bookings, overall or intersecting [from, to).
    The range filter applies only when both bounds are given.
    """
    start = as_date(date_from) if date_from else None
    if start is not None and start < date.today():
        raise InvalidDateRange("You cannot book dates that have already passed.")

    query = select(func.count(Booking.id)).where(Booking.property_id == property_id)

    scope = None
    if date_from and date_to:
        window = DateRange(start, as_date(date_to))
        query = query.where(
            Booking.check_out_date > window.start,
            Booking.check_in_date < window.end,
        )
        scope = BookedScope(from_=date_from, to=date_to)

    count = (await db.execute(query)).scalar_one()
    return IsBookedResponse(is_booked=count > 0, count=count, scope=scope)


def _reject_file(message: str, code: str) -> None:
    raise ValidationFailed([{"path": ["file"], "message": message, "code": code}], message=message)


def safe_filename(filename: str) -> str:
    return _UNSAFE_FILENAME_CHARS.sub("_", filename).lower()


async def upload_property_image(
    storage: ObjectStorage,
    auth_user_id: str,
    filename: Optional[str],
    content_type: Optional[str],
    data: bytes,
) -> str:
    """
    Store a listing image under the uploader's folder and return its public URL.

    A file whose sanitized name the user has already uploaded is rejected.
    """
    if not filename or not data:
        _reject_file("No file selected", "missing")
    if not (content_type or "").startswith("image/"):
        _reject_file("Only image files are allowed", "content_type")
    if len(data) > settings.MAX_UPLOAD_BYTES:
        _reject_file(f"Image exceeds {settings.MAX_UPLOAD_BYTES // (1024 * 1024)} MB", "too_large")

    name = safe_filename(filename)
    path = f"{auth_user_id}/{name}"

    try:
        existing = await storage.list_objects(auth_user_id)
    except StorageError as e:
        logger.error("image_list_failed", auth_user_id=auth_user_id, error=str(e))
        raise UpstreamError(str(e))
    if any(obj.name.lower() == name for obj in existing):
        raise DuplicateListing("You have already uploaded this image.")

    try:
        await storage.upload(path, data, content_type)
    except ObjectAlreadyExists:
        raise DuplicateListing("You have already uploaded this image.")
    except StorageError as e:
        logger.error("image_upload_failed", path=path, error=str(e))
        raise UpstreamError(str(e))

    logger.info("image_uploaded", path=path, size=len(data))
    return storage.public_url(path)
