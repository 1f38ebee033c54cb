"""
In-memory object storage.
Stands in for the cloud media storage collaborator in development and tests.
"""
import posixpath
import uuid
from threading import Lock
from typing import Dict, Iterable, Optional
from urllib.parse import urlparse

from videovault.models.schemas import UploadResult


def public_id_from_url(url: Optional[str]) -> Optional[str]:
    """Asset id embedded in a storage URL: last path segment without extension."""
    if not url:
        return None
    name = posixpath.basename(urlparse(url).path)
    return name.split(".")[0] or None


class InMemoryObjectStorage:
    """
    In-memory implementation of ObjectStorage.
    Records uploaded assets by public id; no bytes are stored.
    """

    def __init__(
        self,
        base_url: str = "https://assets.videovault.local",
        durations: Optional[Dict[str, float]] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._durations = durations or {}
        self._assets: Dict[str, str] = {}
        self._lock = Lock()

    async def upload(self, local_path: str, resource_type: str = "auto") -> UploadResult:
        if not local_path:
            raise ValueError("local_path is required")

        public_id = uuid.uuid4().hex
        extension = posixpath.splitext(local_path)[1]
        folder = "raw" if resource_type == "auto" else resource_type
        url = f"{self._base_url}/{folder}/upload/{public_id}{extension}"

        with self._lock:
            self._assets[public_id] = local_path

        return UploadResult(
            url=url,
            public_id=public_id,
            duration=self._durations.get(local_path),
        )

    async def delete(self, public_id: str, resource_type: str = "image") -> bool:
        with self._lock:
            return self._assets.pop(public_id, None) is not None

    def public_ids(self) -> Iterable[str]:
        with self._lock:
            return list(self._assets)
