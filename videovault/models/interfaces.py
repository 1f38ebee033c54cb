"""
Repository interfaces (abstractions).
Using Protocol for structural subtyping (duck typing with type hints).
These define the contracts that data access implementations must follow.
"""
from typing import (
    TYPE_CHECKING,
    Any,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    runtime_checkable,
)

from videovault.models.schemas import UploadResult

if TYPE_CHECKING:
    from videovault.pipeline.stages import Filter, Stage


@runtime_checkable
class DocumentCollection(Protocol):
    """
    One persistent collection of documents (dicts keyed by `id`).
    Production: MongoDB collection.
    Testing: In-memory implementation.
    """

    async def create(self, document: Mapping[str, Any]) -> Dict[str, Any]:
        ...

    async def find(self, filter_: "Filter" = None) -> List[Dict[str, Any]]:
        ...

    async def find_one(self, filter_: "Filter") -> Optional[Dict[str, Any]]:
        ...

    async def find_by_id(self, document_id: str) -> Optional[Dict[str, Any]]:
        ...

    async def find_by_id_and_update(
        self,
        document_id: str,
        *,
        set_fields: Optional[Mapping[str, Any]] = None,
        increment: Optional[Mapping[str, int]] = None,
        add_to_set: Optional[Mapping[str, Any]] = None,
        pull: Optional[Mapping[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Apply the update atomically and return the updated document,
        or None when no document has this id.
        """
        ...

    async def find_by_id_and_delete(self, document_id: str) -> Optional[Dict[str, Any]]:
        ...

    async def update_many(
        self,
        filter_: "Filter",
        *,
        pull: Optional[Mapping[str, Any]] = None,
    ) -> int:
        ...

    async def delete_many(self, filter_: "Filter") -> int:
        ...

    async def count(self, filter_: "Filter" = None) -> int:
        ...

    async def toggle(self, key: Mapping[str, Any], document: Mapping[str, Any]) -> bool:
        """
        Single conditional write: delete the document matching `key` if one
        exists, otherwise insert `document`.

        Returns:
            True if a document was inserted, False if one was deleted
        """
        ...


@runtime_checkable
class EntityStore(Protocol):
    """
    Entity store holding every collection.
    Production: MongoDB database with aggregation pipelines.
    Testing: In-memory implementation.
    """

    def collection(self, name: str) -> DocumentCollection:
        ...

    async def count(self, collection: str, filter_: "Filter" = None) -> int:
        ...

    async def aggregate(
        self,
        collection: str,
        stages: Sequence["Stage"],
        viewer_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Run a pipeline as a single logical snapshot read.

        Args:
            collection: Root collection
            stages: Compiled pipeline stages
            viewer_id: Identity for viewer-relative computed fields

        Returns:
            Enriched documents in pipeline order
        """
        ...

    def is_valid_id(self, value: Any) -> bool:
        ...

    def sizes(self) -> Dict[str, int]:
        """Document count per collection (readiness reporting)."""
        ...


@runtime_checkable
class ObjectStorage(Protocol):
    """
    Binary asset storage collaborator.
    Production: Cloud media storage (e.g. Cloudinary/S3).
    Testing: In-memory implementation.
    """

    async def upload(self, local_path: str, resource_type: str = "auto") -> UploadResult:
        """
        Upload a local file.

        Raises:
            Exception: Any failure; callers translate it to UpstreamError
        """
        ...

    async def delete(self, public_id: str, resource_type: str = "image") -> bool:
        """Delete an asset, returns True if it existed."""
        ...

    def public_ids(self) -> Iterable[str]:
        ...
