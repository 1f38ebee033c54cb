"""Repository implementations package."""
from .memory import InMemoryCollection, InMemoryEntityStore
from .storage import InMemoryObjectStorage, public_id_from_url

__all__ = [
    "InMemoryCollection",
    "InMemoryEntityStore",
    "InMemoryObjectStorage",
    "public_id_from_url",
]
