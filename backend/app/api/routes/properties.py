"""
Property listing endpoints.

Static paths (/my, /others, /upload-image) are registered before
/{property_id} so they are not captured by it.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user_id, get_object_storage, require_auth_user
from app.db.session import get_db
from app.schemas.property import (
    IsBookedResponse,
    PropertyCreate,
    PropertyDeleteResponse,
    PropertyEnvelope,
    PropertyListResponse,
    PropertyPatch,
    PropertyResponse,
    UploadImageResponse,
)
from app.schemas.sanitize import DATE_PATTERN
from app.services import property_service
from app.services.cache_service import (
    get_cached_property_list,
    invalidate_property_cache,
    set_cached_property_list,
)
from app.services.interfaces.identity import AuthIdentity
from app.services.interfaces.storage import ObjectStorage

router = APIRouter(prefix="/properties", tags=["Properties"])


@router.get("", response_model=PropertyListResponse)
async def list_properties_endpoint(db: AsyncSession = Depends(get_db)):
    """
    Every listing, newest first. Public.
    Served from Redis when cached; the cache is dropped on any listing change.
    """
    cached = await get_cached_property_list()
    if cached is not None:
        return {"properties": cached}

    properties = await property_service.list_properties(db)
    items = [PropertyResponse.model_validate(p).model_dump(mode="json") for p in properties]
    await set_cached_property_list(items)
    return {"properties": items}


@router.get("/my", response_model=PropertyListResponse)
async def list_my_properties(
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Listings owned by the caller."""
    properties = await property_service.list_owned_properties(db, user_id)
    return {"properties": properties}


@router.get("/others", response_model=PropertyListResponse)
async def list_other_properties(
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Available listings the caller can book."""
    properties = await property_service.list_bookable_properties(db, user_id)
    return {"properties": properties}


@router.post("", response_model=PropertyEnvelope, status_code=status.HTTP_201_CREATED)
async def create_property_endpoint(
    data: PropertyCreate,
    user_id: UUID = Depends(get_current_user_id),
    auth_user: AuthIdentity = Depends(require_auth_user),
    db: AsyncSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_object_storage),
):
    """Create a listing. Rejects a second listing with the same name or image."""
    prop = await property_service.create_property(db, storage, user_id, auth_user.id, data)
    await invalidate_property_cache()
    return {"property": prop}


@router.post("/upload-image", response_model=UploadImageResponse)
async def upload_image(
    file: Optional[UploadFile] = File(None),
    auth_user: AuthIdentity = Depends(require_auth_user),
    storage: ObjectStorage = Depends(get_object_storage),
):
    """Store a listing image under the caller's folder and return its public URL."""
    data = await file.read() if file else b""
    url = await property_service.upload_property_image(
        storage,
        auth_user.id,
        file.filename if file else None,
        file.content_type if file else None,
        data,
    )
    return UploadImageResponse(url=url)


@router.get("/{property_id}", response_model=PropertyEnvelope)
async def get_property_endpoint(property_id: UUID, db: AsyncSession = Depends(get_db)):
    prop = await property_service.get_property(db, property_id)
    return {"property": prop}


@router.patch("/{property_id}", response_model=PropertyEnvelope)
async def update_property_endpoint(
    property_id: UUID,
    patch: PropertyPatch,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Partially update an own listing."""
    prop = await property_service.update_property(db, property_id, user_id, patch)
    await invalidate_property_cache()
    return {"property": prop}


@router.delete("/{property_id}", response_model=PropertyDeleteResponse)
async def delete_property_endpoint(
    property_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    auth_user: AuthIdentity = Depends(require_auth_user),
    db: AsyncSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_object_storage),
):
    """Delete an own listing and, best effort, its stored image."""
    await property_service.delete_property(db, storage, property_id, user_id, auth_user.id)
    await invalidate_property_cache()
    return PropertyDeleteResponse(message="The property and its image were removed.")


@router.get("/{property_id}/is-booked", response_model=IsBookedResponse)
async def is_booked(
    property_id: UUID,
    date_from: Optional[str] = Query(None, alias="from", pattern=DATE_PATTERN),
    date_to: Optional[str] = Query(None, alias="to", pattern=DATE_PATTERN),
    db: AsyncSession = Depends(get_db),
):
    """Whether the property has bookings, optionally within [from, to)."""
    return await property_service.get_booked_status(db, property_id, date_from, date_to)
