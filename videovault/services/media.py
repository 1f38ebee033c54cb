"""
Media service - gateway to the object storage collaborator.
Uploads fail fast (timeout + circuit breaker, no retry); deletions are
best effort.
"""
import asyncio
import logging
from typing import Optional

from videovault.core.circuit_breaker import CircuitBreaker
from videovault.core.exceptions import CircuitBreakerOpenError, UpstreamError
from videovault.models.interfaces import ObjectStorage
from videovault.models.schemas import UploadResult
from videovault.repositories.storage import public_id_from_url

logger = logging.getLogger(__name__)

SERVICE_NAME = "object_storage"


class MediaService:
    """Uploads and removes media assets through the storage collaborator."""

    def __init__(
        self,
        storage: ObjectStorage,
        circuit_breaker: Optional[CircuitBreaker] = None,
        timeout_sec: float = 10.0,
    ) -> None:
        self._storage = storage
        self._circuit_breaker = circuit_breaker or CircuitBreaker(name=SERVICE_NAME)
        self._timeout_sec = timeout_sec

    async def upload(self, local_path: str, resource_type: str = "auto") -> UploadResult:
        """
        Upload a local file.

        Raises:
            UpstreamError: If the upload fails, times out or the circuit is open
        """
        try:
            return await self._circuit_breaker.call(
                lambda: asyncio.wait_for(
                    self._storage.upload(local_path, resource_type),
                    timeout=self._timeout_sec,
                )
            )
        except CircuitBreakerOpenError:
            raise
        except asyncio.TimeoutError as e:
            raise UpstreamError(SERVICE_NAME, f"upload timed out after {self._timeout_sec}s") from e
        except Exception as e:
            logger.error(f"Upload of {local_path} failed: {e}")
            raise UpstreamError(SERVICE_NAME, f"upload failed: {e}") from e

    async def discard(self, url: Optional[str], resource_type: str = "image") -> bool:
        """
        Best-effort removal of the asset behind `url`.
        Failures are logged and swallowed; returns True only if the asset was deleted.
        """
        public_id = public_id_from_url(url)
        if public_id is None:
            return False

        try:
            return await self._circuit_breaker.call(
                lambda: asyncio.wait_for(
                    self._storage.delete(public_id, resource_type),
                    timeout=self._timeout_sec,
                )
            )
        except Exception as e:
            logger.warning(f"Failed to delete {resource_type} asset {public_id}: {e}")
            return False
