"""
Supabase Storage backend for listing images.

Uses the service-role key: bucket policies are enforced by the service layer
(per-user folders), not by the storage API.
"""

import httpx

from app.infrastructure.supabase_client import error_message
from app.services.interfaces.storage import ObjectAlreadyExists, ObjectStorage, StorageError, StoredObject


class SupabaseObjectStorage(ObjectStorage):

    def __init__(self, client: httpx.AsyncClient, service_key: str, bucket: str, base_url: str):
        super().__init__(bucket)
        self.client = client
        self.service_key = service_key
        self.base_url = base_url.rstrip("/")

    def _headers(self) -> dict:
        return {"apikey": self.service_key, "Authorization": f"Bearer {self.service_key}"}

    async def list_objects(self, prefix: str) -> list[StoredObject]:
        response = await self.client.post(
            f"/storage/v1/object/list/{self.bucket}",
            json={"prefix": prefix, "limit": 1000, "offset": 0},
            headers=self._headers(),
        )
        if response.is_error:
            raise StorageError(error_message(response))
        return [
            StoredObject(name=item["name"], size=(item.get("metadata") or {}).get("size"))
            for item in response.json()
        ]

    async def upload(self, path: str, data: bytes, content_type: str) -> None:
        response = await self.client.post(
            f"/storage/v1/object/{self.bucket}/{path}",
            content=data,
            headers={
                **self._headers(),
                "Content-Type": content_type,
                "Cache-Control": "max-age=3600",
                "x-upsert": "false",
            },
        )
        if response.is_error:
            message = error_message(response)
            if response.status_code == 409 or "exists" in message.lower():
                raise ObjectAlreadyExists(message)
            raise StorageError(message)

    async def remove(self, paths: list[str]) -> None:
        if not paths:
            return
        response = await self.client.request(
            "DELETE",
            f"/storage/v1/object/{self.bucket}",
            json={"prefixes": paths},
            headers=self._headers(),
        )
        if response.is_error:
            raise StorageError(error_message(response))

    def public_url(self, path: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{path}"
