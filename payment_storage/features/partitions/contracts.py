"""
Versioned partition store protocol.

A partition is a key-value namespace where every item carries an opaque
version token. Saving an item without a version inserts it; saving with a
version writes only if the stored version still matches.
"""
from dataclasses import dataclass
from typing import Generic, Iterator, Optional, Protocol, Type, TypeVar
from uuid import uuid4

from pydantic import BaseModel

T = TypeVar("T", bound=BaseModel)


@dataclass(frozen=True)
class Item(Generic[T]):
    """A stored value plus the version token it was read (or written) at."""
    id: str
    data: T
    version: Optional[str] = None


class PartitionStorageError(Exception):
    """Base exception for partition store errors."""

    def __init__(self, message: str, *, partition: str, item_id: str):
        super().__init__(message)
        self.partition = partition
        self.item_id = item_id


class ItemNotFound(PartitionStorageError):
    def __init__(self, partition: str, item_id: str):
        super().__init__(f"Item '{item_id}' not found in partition '{partition}'", partition=partition, item_id=item_id)


class ItemAlreadyExists(PartitionStorageError):
    def __init__(self, partition: str, item_id: str):
        super().__init__(f"Item '{item_id}' already exists in partition '{partition}'", partition=partition, item_id=item_id)


class ItemVersionConflict(PartitionStorageError):
    def __init__(self, partition: str, item_id: str, expected_version: str):
        super().__init__(
            f"Item '{item_id}' in partition '{partition}' no longer has version '{expected_version}'",
            partition=partition,
            item_id=item_id,
        )
        self.expected_version = expected_version


def new_version() -> str:
    return uuid4().hex


class ItemSerializer:
    """JSON serializer for pydantic payload models."""

    def serialize(self, data: BaseModel) -> str:
        return data.model_dump_json()

    def deserialize(self, raw: str, model: Type[T]) -> T:
        return model.model_validate_json(raw)


class Partition(Protocol[T]):
    """
    Protocol for a single versioned partition.

    Implementations must evaluate the version condition atomically with
    the write; a separate check-then-write is not acceptable.
    """

    name: str

    def get(self, item_id: str) -> Item[T]:
        """
        Read an item.

        Raises:
            ItemNotFound: If no item is stored under item_id
        """
        ...

    def save(self, item: Item[T]) -> Item[T]:
        """
        Insert (item.version is None) or conditionally update an item.

        Returns:
            The stored item carrying its new version token

        Raises:
            ItemAlreadyExists: On insert when item.id is already present
            ItemVersionConflict: On update when the stored version differs
            ItemNotFound: On update when the item no longer exists
        """
        ...

    def scan(self) -> Iterator[Item[T]]:
        """Enumerate every item in the partition (single pass)."""
        ...


class Partitions(Protocol):
    """Factory for named partitions."""

    def get(self, name: str, model: Type[T]) -> Partition[T]:
        ...
