"""
Local object storage - files under MEDIA_ROOT, served by the app at /media.
"""

import os
from pathlib import Path

from starlette.concurrency import run_in_threadpool

from app.services.interfaces.storage import ObjectAlreadyExists, ObjectStorage, StorageError, StoredObject


class LocalObjectStorage(ObjectStorage):

    def __init__(self, root: str, bucket: str, public_base_url: str):
        super().__init__(bucket)
        self.root = Path(root) / bucket
        self.public_base_url = public_base_url.rstrip("/")

    def _resolve(self, path: str) -> Path:
        target = (self.root / path).resolve()
        if self.root.resolve() not in target.parents:
            raise StorageError(f"Invalid object path: {path}")
        return target

    async def list_objects(self, prefix: str) -> list[StoredObject]:
        folder = self.root / prefix

        def _scan() -> list[StoredObject]:
            if not folder.is_dir():
                return []
            return [
                StoredObject(name=p.name, size=p.stat().st_size)
                for p in sorted(folder.iterdir())
                if p.is_file()
            ]

        return await run_in_threadpool(_scan)

    async def upload(self, path: str, data: bytes, content_type: str) -> None:
        target = self._resolve(path)

        def _write() -> None:
            target.parent.mkdir(parents=True, exist_ok=True)
            # "xb" refuses to overwrite
            with open(target, "xb") as fh:
                fh.write(data)

        try:
            await run_in_threadpool(_write)
        except FileExistsError:
            raise ObjectAlreadyExists(f"The resource already exists: {path}")

    async def remove(self, paths: list[str]) -> None:
        for path in paths:
            target = self._resolve(path)
            await run_in_threadpool(lambda: os.path.exists(target) and os.remove(target))

    def public_url(self, path: str) -> str:
        return f"{self.public_base_url}/media/{self.bucket}/{path}"
