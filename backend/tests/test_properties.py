"""
Tests for property listings: CRUD, ownership, duplicate detection,
booked-status queries and image uploads.
"""

from datetime import date, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest
from httpx import AsyncClient

from app.main import app
from app.api.deps import get_object_storage
from app.models.booking import Booking
from app.models.property import Property
from app.services.interfaces.local_storage import LocalObjectStorage
from app.services.interfaces.storage import StorageError


LISTING = {
    "name": "Forest Hut",
    "description": "Small hut in the woods",
    "location": "Dalarna",
    "price_per_night": 850,
}


@pytest.mark.asyncio
async def test_create_property(client: AsyncClient, owner, owner_headers):
    response = await client.post("/api/properties", json=LISTING, headers=owner_headers)
    assert response.status_code == 201
    prop = response.json()["property"]
    assert prop["name"] == "Forest Hut"
    assert prop["owner_id"] == str(owner.id)
    assert prop["price_per_night"] == 850.0
    assert prop["availability"] is True
    assert prop["image_url"] is None


@pytest.mark.asyncio
async def test_create_property_requires_session(client: AsyncClient):
    response = await client.post("/api/properties", json=LISTING)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_create_property_validation(client: AsyncClient, owner_headers):
    response = await client.post(
        "/api/properties",
        json={"name": "X", "location": "Dalarna", "price_per_night": 0},
        headers=owner_headers,
    )
    assert response.status_code == 400
    paths = {tuple(issue["path"]) for issue in response.json()["issues"]}
    assert ("name",) in paths
    assert ("price_per_night",) in paths


@pytest.mark.asyncio
async def test_create_property_rejects_bad_image_url(client: AsyncClient, owner_headers):
    response = await client.post(
        "/api/properties",
        json={**LISTING, "image_url": "not a url"},
        headers=owner_headers,
    )
    assert response.status_code == 400
    assert response.json()["issues"][0]["path"] == ["image_url"]


@pytest.mark.asyncio
async def test_duplicate_name_is_rejected(client: AsyncClient, owner_headers, test_property):
    """Same owner, same name after trimming and case folding."""
    response = await client.post(
        "/api/properties",
        json={**LISTING, "name": "  LAKESIDE cabin "},
        headers=owner_headers,
    )
    assert response.status_code == 400
    assert response.json()["error"] == "You already have a listing with the same name or image."


@pytest.mark.asyncio
async def test_same_name_allowed_for_other_owner(client: AsyncClient, guest_headers, test_property):
    response = await client.post(
        "/api/properties",
        json={**LISTING, "name": "Lakeside Cabin"},
        headers=guest_headers,
    )
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_list_properties_is_public(client: AsyncClient, test_property, second_property):
    response = await client.get("/api/properties")
    assert response.status_code == 200
    names = {p["name"] for p in response.json()["properties"]}
    assert names == {"Lakeside Cabin", "City Loft"}


@pytest.mark.asyncio
async def test_my_and_other_properties(
    client: AsyncClient, db_session, guest, owner_headers, guest_headers, test_property,
):
    """/my lists own listings; /others lists available listings of other owners."""
    hidden = Property(
        owner_id=test_property.owner_id,
        name="Closed Barn",
        location="Mora",
        price_per_night=Decimal("400.00"),
        availability=False,
    )
    guest_listing = Property(
        owner_id=guest.id,
        name="Guest Flat",
        location="Falun",
        price_per_night=Decimal("600.00"),
    )
    db_session.add_all([hidden, guest_listing])
    await db_session.commit()

    mine = await client.get("/api/properties/my", headers=owner_headers)
    assert {p["name"] for p in mine.json()["properties"]} == {"Lakeside Cabin", "Closed Barn"}

    others = await client.get("/api/properties/others", headers=guest_headers)
    assert {p["name"] for p in others.json()["properties"]} == {"Lakeside Cabin"}

    others = await client.get("/api/properties/others", headers=owner_headers)
    assert {p["name"] for p in others.json()["properties"]} == {"Guest Flat"}


@pytest.mark.asyncio
async def test_get_property(client: AsyncClient, test_property):
    response = await client.get(f"/api/properties/{test_property.id}")
    assert response.status_code == 200
    assert response.json()["property"]["id"] == str(test_property.id)


@pytest.mark.asyncio
async def test_get_missing_property(client: AsyncClient):
    response = await client.get(f"/api/properties/{uuid4()}")
    assert response.status_code == 404
    assert response.json() == {"error": "Property not found"}


@pytest.mark.asyncio
async def test_get_property_malformed_id(client: AsyncClient):
    response = await client.get("/api/properties/not-a-uuid")
    assert response.status_code == 400
    assert response.json()["issues"][0]["path"] == ["property_id"]


@pytest.mark.asyncio
async def test_owner_can_patch(client: AsyncClient, owner_headers, test_property):
    response = await client.patch(
        f"/api/properties/{test_property.id}",
        json={"price_per_night": 1100.5, "availability": False},
        headers=owner_headers,
    )
    assert response.status_code == 200
    prop = response.json()["property"]
    assert prop["price_per_night"] == 1100.5
    assert prop["availability"] is False
    assert prop["name"] == "Lakeside Cabin"


@pytest.mark.asyncio
async def test_patch_rejects_null_required_field(client: AsyncClient, owner_headers, test_property):
    response = await client.patch(
        f"/api/properties/{test_property.id}",
        json={"name": None},
        headers=owner_headers,
    )
    assert response.status_code == 400
    assert response.json()["issues"][0]["path"] == ["name"]


@pytest.mark.asyncio
async def test_non_owner_cannot_patch(client: AsyncClient, guest_headers, test_property):
    response = await client.patch(
        f"/api/properties/{test_property.id}",
        json={"price_per_night": 1},
        headers=guest_headers,
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_patch_missing_property(client: AsyncClient, owner_headers):
    response = await client.patch(
        f"/api/properties/{uuid4()}",
        json={"price_per_night": 1},
        headers=owner_headers,
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_property(client: AsyncClient, owner_headers, guest_headers, test_property):
    denied = await client.delete(f"/api/properties/{test_property.id}", headers=guest_headers)
    assert denied.status_code == 403

    response = await client.delete(f"/api/properties/{test_property.id}", headers=owner_headers)
    assert response.status_code == 200
    assert response.json()["ok"] is True

    gone = await client.get(f"/api/properties/{test_property.id}")
    assert gone.status_code == 404


# --- booked status ---


@pytest.mark.asyncio
async def test_is_booked_without_bookings(client: AsyncClient, test_property):
    response = await client.get(f"/api/properties/{test_property.id}/is-booked")
    assert response.status_code == 200
    assert response.json() == {"is_booked": False, "count": 0, "scope": None}


@pytest.mark.asyncio
async def test_is_booked_with_range(client: AsyncClient, db_session, guest, test_property, monday):
    db_session.add(Booking(
        user_id=guest.id,
        property_id=test_property.id,
        check_in_date=monday,
        check_out_date=monday + timedelta(days=2),
        total_price=Decimal("2000.00"),
    ))
    await db_session.commit()

    url = f"/api/properties/{test_property.id}/is-booked"
    overall = await client.get(url)
    assert overall.json()["is_booked"] is True
    assert overall.json()["count"] == 1

    params = {"from": str(monday + timedelta(days=1)), "to": str(monday + timedelta(days=3))}
    inside = await client.get(url, params=params)
    assert inside.json() == {
        "is_booked": True,
        "count": 1,
        "scope": {"from": params["from"], "to": params["to"]},
    }

    # Check-out day is free
    params = {"from": str(monday + timedelta(days=2)), "to": str(monday + timedelta(days=4))}
    after = await client.get(url, params=params)
    assert after.json()["is_booked"] is False

    # Repeated queries give the same answer
    assert (await client.get(url, params=params)).json() == after.json()


@pytest.mark.asyncio
async def test_is_booked_rejects_past_from(client: AsyncClient, test_property):
    yesterday = date.today() - timedelta(days=1)
    response = await client.get(
        f"/api/properties/{test_property.id}/is-booked",
        params={"from": str(yesterday)},
    )
    assert response.status_code == 400
    assert response.json()["error"] == "You cannot book dates that have already passed."


@pytest.mark.asyncio
async def test_is_booked_rejects_bad_date_format(client: AsyncClient, test_property):
    response = await client.get(
        f"/api/properties/{test_property.id}/is-booked",
        params={"from": "01/02/2030"},
    )
    assert response.status_code == 400
    assert response.json()["issues"][0]["path"] == ["from"]


# --- image upload ---


@pytest.mark.asyncio
async def test_upload_image(client: AsyncClient, owner, owner_headers, storage):
    response = await client.post(
        "/api/properties/upload-image",
        files={"file": ("Front View.PNG", b"\x89PNG fake", "image/png")},
        headers=owner_headers,
    )
    assert response.status_code == 200
    url = response.json()["url"]
    assert url == f"http://test/media/property-images/{owner.auth_user_id}/front_view.png"
    assert (storage.root / owner.auth_user_id / "front_view.png").read_bytes() == b"\x89PNG fake"


@pytest.mark.asyncio
async def test_upload_same_image_twice(client: AsyncClient, owner_headers):
    files = {"file": ("cabin.jpg", b"jpeg bytes", "image/jpeg")}
    first = await client.post("/api/properties/upload-image", files=files, headers=owner_headers)
    assert first.status_code == 200

    second = await client.post("/api/properties/upload-image", files=files, headers=owner_headers)
    assert second.status_code == 400
    assert second.json()["error"] == "You have already uploaded this image."


@pytest.mark.asyncio
async def test_upload_rejects_non_image(client: AsyncClient, owner_headers):
    response = await client.post(
        "/api/properties/upload-image",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        headers=owner_headers,
    )
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Only image files are allowed"
    assert body["issues"][0]["path"] == ["file"]


@pytest.mark.asyncio
async def test_upload_rejects_empty_file(client: AsyncClient, owner_headers):
    response = await client.post(
        "/api/properties/upload-image",
        files={"file": ("empty.png", b"", "image/png")},
        headers=owner_headers,
    )
    assert response.status_code == 400
    assert response.json()["error"] == "No file selected"


@pytest.mark.asyncio
async def test_upload_requires_session(client: AsyncClient):
    response = await client.post(
        "/api/properties/upload-image",
        files={"file": ("cabin.jpg", b"jpeg bytes", "image/jpeg")},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_image_lifecycle(client: AsyncClient, owner, owner_headers, storage):
    """Duplicate image listings discard the upload; deleting a listing removes its image."""
    upload = await client.post(
        "/api/properties/upload-image",
        files={"file": ("lake.png", b"png", "image/png")},
        headers=owner_headers,
    )
    image_url = upload.json()["url"]
    stored = storage.root / owner.auth_user_id / "lake.png"

    created = await client.post(
        "/api/properties",
        json={**LISTING, "image_url": image_url},
        headers=owner_headers,
    )
    assert created.status_code == 201
    assert created.json()["property"]["image_url"] == image_url
    assert stored.exists()

    deleted = await client.delete(
        f"/api/properties/{created.json()['property']['id']}",
        headers=owner_headers,
    )
    assert deleted.status_code == 200
    assert not stored.exists()


@pytest.mark.asyncio
async def test_duplicate_listing_discards_new_image(
    client: AsyncClient, owner, owner_headers, storage, test_property,
):
    upload = await client.post(
        "/api/properties/upload-image",
        files={"file": ("again.png", b"png", "image/png")},
        headers=owner_headers,
    )
    stored = storage.root / owner.auth_user_id / "again.png"
    assert stored.exists()

    response = await client.post(
        "/api/properties",
        json={**LISTING, "name": "Lakeside Cabin", "image_url": upload.json()["url"]},
        headers=owner_headers,
    )
    assert response.status_code == 400
    assert not stored.exists()


async def _upload(client: AsyncClient, headers: dict, filename: str) -> str:
    response = await client.post(
        "/api/properties/upload-image",
        files={"file": (filename, b"png", "image/png")},
        headers=headers,
    )
    assert response.status_code == 200
    return response.json()["url"]


@pytest.mark.asyncio
async def test_other_users_image_is_never_removed(
    client: AsyncClient, owner, owner_headers, guest_headers, storage,
):
    """A listing pointing at someone else's upload cannot take that file with it."""
    image_url = await _upload(client, owner_headers, "victim.png")
    stored = storage.root / owner.auth_user_id / "victim.png"

    created = await client.post(
        "/api/properties",
        json={**LISTING, "image_url": image_url},
        headers=guest_headers,
    )
    assert created.status_code == 201

    deleted = await client.delete(
        f"/api/properties/{created.json()['property']['id']}",
        headers=guest_headers,
    )
    assert deleted.status_code == 200
    assert stored.exists()


@pytest.mark.asyncio
async def test_duplicate_rejection_keeps_other_users_image(
    client: AsyncClient, owner, owner_headers, guest_headers, storage,
):
    image_url = await _upload(client, owner_headers, "shared.png")

    # Name clash with the guest's own listing would normally discard the candidate image
    await client.post("/api/properties", json=LISTING, headers=guest_headers)
    response = await client.post(
        "/api/properties",
        json={**LISTING, "image_url": image_url},
        headers=guest_headers,
    )
    assert response.status_code == 400
    assert (storage.root / owner.auth_user_id / "shared.png").exists()


@pytest.mark.asyncio
async def test_duplicate_image_keeps_existing_listing_image(
    client: AsyncClient, owner, owner_headers, storage,
):
    """Reusing a listing's image is a duplicate, and that listing keeps its file."""
    image_url = await _upload(client, owner_headers, "mine.png")
    first = await client.post(
        "/api/properties",
        json={**LISTING, "image_url": image_url},
        headers=owner_headers,
    )
    assert first.status_code == 201

    response = await client.post(
        "/api/properties",
        json={**LISTING, "name": "Other Name", "image_url": image_url},
        headers=owner_headers,
    )
    assert response.status_code == 400
    assert response.json()["error"] == "You already have a listing with the same name or image."
    assert (storage.root / owner.auth_user_id / "mine.png").exists()


@pytest.mark.asyncio
async def test_delete_keeps_image_used_by_another_listing(
    client: AsyncClient, owner, owner_headers, guest_headers, storage,
):
    image_url = await _upload(client, owner_headers, "popular.png")
    own = await client.post(
        "/api/properties",
        json={**LISTING, "image_url": image_url},
        headers=owner_headers,
    )
    await client.post(
        "/api/properties",
        json={**LISTING, "image_url": image_url},
        headers=guest_headers,
    )

    deleted = await client.delete(
        f"/api/properties/{own.json()['property']['id']}",
        headers=owner_headers,
    )
    assert deleted.status_code == 200
    assert (storage.root / owner.auth_user_id / "popular.png").exists()


class FailingRemoveStorage(LocalObjectStorage):

    async def remove(self, paths: list[str]) -> None:
        raise StorageError("bucket unavailable")


@pytest.mark.asyncio
async def test_delete_survives_image_removal_failure(
    client: AsyncClient, db_session, owner, owner_headers, tmp_path,
):
    """Image cleanup is best effort: the listing is deleted even if storage fails."""
    failing = FailingRemoveStorage(str(tmp_path / "failing"), "property-images", "http://test")
    app.dependency_overrides[get_object_storage] = lambda: failing

    prop = Property(
        owner_id=owner.id,
        name="Storm Shack",
        location="Visby",
        price_per_night=Decimal("500.00"),
        image_url=failing.public_url(f"{owner.auth_user_id}/shack.png"),
    )
    db_session.add(prop)
    await db_session.commit()

    response = await client.delete(f"/api/properties/{prop.id}", headers=owner_headers)
    assert response.status_code == 200
    assert response.json()["ok"] is True
    assert await db_session.get(Property, prop.id) is None
