"""
Object store abstraction used by the gateway.

The gateway only needs keyed put/get/delete with a content type. Concrete
stores (R2, in-memory) live in the infrastructure layer.
"""

from typing import Optional, Protocol


class StoredObject(Protocol):
    """A handle to an object returned by `ObjectStore.get`."""

    key: str
    content_type: Optional[str]

    async def read(self) -> bytes:
        """Read the full payload into memory."""
        ...


class ObjectStore(Protocol):
    """
    Protocol for keyed object storage.

    `put` overwrites any existing object at the key. `delete` of a missing
    key is not an error. `get` returns None for a missing key.
    """

    async def put(self, key: str, data: bytes, content_type: str) -> None:
        ...

    async def get(self, key: str) -> Optional[StoredObject]:
        ...

    async def delete(self, key: str) -> None:
        ...
