"""
In-memory entity store.
Used for prototyping and testing.
Production would replace this with a MongoDB implementation.

All collections share one re-entrant lock: every write and every pipeline
read runs under it, so an aggregate sees a single consistent snapshot.
"""
import copy
import logging
from threading import RLock
from typing import Any, Dict, List, Mapping, Optional, Sequence

from videovault.core.identifiers import is_valid_id, new_id
from videovault.models.schemas import (
    Collections,
    Like,
    Playlist,
    Subscription,
    User,
    Video,
    utc_now,
)
from videovault.pipeline.stages import (
    EvaluationContext,
    Filter,
    Stage,
    as_predicate,
    run_pipeline,
)

logger = logging.getLogger(__name__)


class InMemoryCollection:
    """
    In-memory implementation of DocumentCollection.
    Documents are kept in insertion order, keyed by id.
    """

    def __init__(self, name: str, lock: RLock) -> None:
        self._name = name
        self._lock = lock
        self._documents: Dict[str, Dict[str, Any]] = {}

    @property
    def name(self) -> str:
        return self._name

    def snapshot(self) -> List[Dict[str, Any]]:
        """Stored documents, in insertion order. Caller must hold the lock."""
        return list(self._documents.values())

    def insert(self, document: Mapping[str, Any]) -> Dict[str, Any]:
        """Synchronous insert used for seeding."""
        stored = copy.deepcopy(dict(document))
        stored.setdefault("id", new_id())
        now = utc_now()
        stored.setdefault("created_at", now)
        stored.setdefault("updated_at", now)
        with self._lock:
            if stored["id"] in self._documents:
                raise ValueError(f"Duplicate id in '{self._name}': {stored['id']}")
            self._documents[stored["id"]] = stored
        return copy.deepcopy(stored)

    async def create(self, document: Mapping[str, Any]) -> Dict[str, Any]:
        return self.insert(document)

    async def find(self, filter_: Filter = None) -> List[Dict[str, Any]]:
        predicate = as_predicate(filter_)
        with self._lock:
            return [copy.deepcopy(doc) for doc in self._documents.values() if predicate(doc)]

    async def find_one(self, filter_: Filter) -> Optional[Dict[str, Any]]:
        predicate = as_predicate(filter_)
        with self._lock:
            for doc in self._documents.values():
                if predicate(doc):
                    return copy.deepcopy(doc)
        return None

    async def find_by_id(self, document_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            doc = self._documents.get(document_id)
            return copy.deepcopy(doc) if doc is not None else None

    async def find_by_id_and_update(
        self,
        document_id: str,
        *,
        set_fields: Optional[Mapping[str, Any]] = None,
        increment: Optional[Mapping[str, int]] = None,
        add_to_set: Optional[Mapping[str, Any]] = None,
        pull: Optional[Mapping[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        with self._lock:
            doc = self._documents.get(document_id)
            if doc is None:
                return None
            self._apply_update(doc, set_fields, increment, add_to_set, pull)
            return copy.deepcopy(doc)

    async def find_by_id_and_delete(self, document_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            doc = self._documents.pop(document_id, None)
            return copy.deepcopy(doc) if doc is not None else None

    async def update_many(
        self,
        filter_: Filter,
        *,
        pull: Optional[Mapping[str, Any]] = None,
    ) -> int:
        predicate = as_predicate(filter_)
        with self._lock:
            matched = [doc for doc in self._documents.values() if predicate(doc)]
            for doc in matched:
                self._apply_update(doc, None, None, None, pull)
            return len(matched)

    async def delete_many(self, filter_: Filter) -> int:
        predicate = as_predicate(filter_)
        with self._lock:
            doomed = [key for key, doc in self._documents.items() if predicate(doc)]
            for key in doomed:
                del self._documents[key]
            return len(doomed)

    async def count(self, filter_: Filter = None) -> int:
        predicate = as_predicate(filter_)
        with self._lock:
            return sum(1 for doc in self._documents.values() if predicate(doc))

    async def toggle(self, key: Mapping[str, Any], document: Mapping[str, Any]) -> bool:
        predicate = as_predicate(key)
        with self._lock:
            for doc_id, doc in self._documents.items():
                if predicate(doc):
                    del self._documents[doc_id]
                    return False
            self.insert(document)
            return True

    @staticmethod
    def _apply_update(
        doc: Dict[str, Any],
        set_fields: Optional[Mapping[str, Any]],
        increment: Optional[Mapping[str, int]],
        add_to_set: Optional[Mapping[str, Any]],
        pull: Optional[Mapping[str, Any]],
    ) -> None:
        for name, value in (set_fields or {}).items():
            if name == "id":
                raise ValueError("Document id is immutable")
            doc[name] = copy.deepcopy(value)
        for name, amount in (increment or {}).items():
            doc[name] = doc.get(name, 0) + amount
        for name, value in (add_to_set or {}).items():
            members = doc.setdefault(name, [])
            if value not in members:
                members.append(value)
        for name, value in (pull or {}).items():
            doc[name] = [member for member in doc.get(name, []) if member != value]
        doc["updated_at"] = utc_now()


class InMemoryEntityStore:
    """
    In-memory implementation of EntityStore.
    Simulates a MongoDB database with aggregation pipelines.
    """

    def __init__(self, with_demo_data: bool = False) -> None:
        self._lock = RLock()
        self._collections: Dict[str, InMemoryCollection] = {
            name: InMemoryCollection(name, self._lock) for name in Collections.ALL
        }
        if with_demo_data:
            self._initialize_demo_data()

    def collection(self, name: str) -> InMemoryCollection:
        try:
            return self._collections[name]
        except KeyError:
            raise ValueError(f"Unknown collection: {name}") from None

    def seed(self, name: str, documents: Sequence[Mapping[str, Any]]) -> List[Dict[str, Any]]:
        """Insert documents synchronously (fixtures and demo data)."""
        target = self.collection(name)
        return [target.insert(document) for document in documents]

    async def count(self, collection: str, filter_: Filter = None) -> int:
        return await self.collection(collection).count(filter_)

    async def aggregate(
        self,
        collection: str,
        stages: Sequence[Stage],
        viewer_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Run a pipeline as a single snapshot read."""
        root = self.collection(collection)
        context = EvaluationContext(viewer_id=viewer_id)
        with self._lock:
            results = run_pipeline(
                root.snapshot(),
                stages,
                lambda name: self.collection(name).snapshot(),
                context,
            )
            return copy.deepcopy(results)

    def is_valid_id(self, value: Any) -> bool:
        return is_valid_id(value)

    def sizes(self) -> Dict[str, int]:
        with self._lock:
            return {name: len(c.snapshot()) for name, c in self._collections.items()}

    def _initialize_demo_data(self) -> None:
        """Load a small demo dataset for local development."""
        alice = User(username="alice", fullname="Alice Archer", email="alice@example.com")
        bob = User(username="bob", fullname="Bob Builder", email="bob@example.com")
        carol = User(username="carol", fullname="Carol Chen", email="carol@example.com")

        intro = Video(
            owner=alice.id,
            title="Getting started with sourdough",
            description="Feeding the starter, day one",
            video_file="https://assets.videovault.local/video/upload/sourdough1.mp4",
            thumbnail="https://assets.videovault.local/image/upload/sourdough1.png",
            duration=312.0,
            views=140,
            is_published=True,
        )
        shaping = Video(
            owner=alice.id,
            title="Shaping a batard",
            description="Tension, folds and proofing baskets",
            video_file="https://assets.videovault.local/video/upload/sourdough2.mp4",
            thumbnail="https://assets.videovault.local/image/upload/sourdough2.png",
            duration=498.0,
            views=75,
            is_published=True,
        )
        draft = Video(
            owner=bob.id,
            title="Deck framing (rough cut)",
            description="Unedited footage",
            video_file="https://assets.videovault.local/video/upload/deck.mp4",
            is_published=False,
        )

        self.seed(Collections.USERS, [u.model_dump() for u in (alice, bob, carol)])
        self.seed(Collections.VIDEOS, [v.model_dump() for v in (intro, shaping, draft)])
        self.seed(Collections.SUBSCRIPTIONS, [
            Subscription(channel=alice.id, subscriber=bob.id).model_dump(),
            Subscription(channel=alice.id, subscriber=carol.id).model_dump(),
        ])
        self.seed(Collections.LIKES, [
            Like(video=intro.id, liked_by=bob.id).model_dump(),
        ])
        self.seed(Collections.PLAYLISTS, [
            Playlist(
                owner=carol.id,
                name="Weekend baking",
                description="Bread to try",
                videos=[shaping.id, intro.id],
            ).model_dump(),
        ])
        logger.info("Demo data loaded into in-memory entity store")
