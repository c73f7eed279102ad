"""
In-memory partition store.

Used for tests and local development when DATABASE_URL is not configured.
All partitions share one lock so every save is a single atomic section.
"""
import threading
from typing import Dict, Generic, Iterator, Optional, Tuple, Type

from payment_storage.features.partitions.contracts import (
    Item,
    ItemAlreadyExists,
    ItemNotFound,
    ItemSerializer,
    ItemVersionConflict,
    T,
    new_version,
)

# item_id -> (version, serialized payload)
_Rows = Dict[str, Tuple[str, str]]


class MemoryPartition(Generic[T]):
    def __init__(self, name: str, model: Type[T], rows: _Rows, lock: threading.RLock, serializer: ItemSerializer):
        self.name = name
        self.model = model
        self._rows = rows
        self._lock = lock
        self._serializer = serializer

    def get(self, item_id: str) -> Item[T]:
        with self._lock:
            row = self._rows.get(item_id)
        if row is None:
            raise ItemNotFound(self.name, item_id)
        version, raw = row
        return Item(id=item_id, data=self._serializer.deserialize(raw, self.model), version=version)

    def save(self, item: Item[T]) -> Item[T]:
        raw = self._serializer.serialize(item.data)
        version = new_version()
        with self._lock:
            current = self._rows.get(item.id)
            if item.version is None:
                if current is not None:
                    raise ItemAlreadyExists(self.name, item.id)
            else:
                if current is None:
                    raise ItemNotFound(self.name, item.id)
                if current[0] != item.version:
                    raise ItemVersionConflict(self.name, item.id, item.version)
            self._rows[item.id] = (version, raw)
        return Item(id=item.id, data=item.data, version=version)

    def scan(self) -> Iterator[Item[T]]:
        with self._lock:
            snapshot = sorted(self._rows.items())
        for item_id, (version, raw) in snapshot:
            yield Item(id=item_id, data=self._serializer.deserialize(raw, self.model), version=version)


class MemoryPartitions:
    """In-process implementation of the Partitions factory."""

    def __init__(self, serializer: Optional[ItemSerializer] = None):
        self._serializer = serializer or ItemSerializer()
        self._lock = threading.RLock()
        self._partitions: Dict[str, _Rows] = {}

    def get(self, name: str, model: Type[T]) -> MemoryPartition[T]:
        with self._lock:
            rows = self._partitions.setdefault(name, {})
        return MemoryPartition(name, model, rows, self._lock, self._serializer)
