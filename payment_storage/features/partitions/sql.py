"""
SQLAlchemy partition store.

Every partition lives in the shared partition_items table. Inserts rely on
the composite primary key for existence conflicts and updates are a single
UPDATE ... WHERE version = :expected statement, so the version check and the
write are one atomic operation in the database.
"""
from typing import Generic, Iterator, Optional, Type

from sqlalchemy import and_, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.sql import func

from payment_storage.core.database import create_all_tables, get_db_session, partition_items
from payment_storage.features.partitions.contracts import (
    Item,
    ItemAlreadyExists,
    ItemNotFound,
    ItemSerializer,
    ItemVersionConflict,
    T,
    new_version,
)


class SqlPartition(Generic[T]):
    def __init__(self, name: str, model: Type[T], serializer: ItemSerializer):
        self.name = name
        self.model = model
        self._serializer = serializer

    def _key(self, item_id: str):
        return and_(
            partition_items.c.partition == self.name,
            partition_items.c.item_id == item_id,
        )

    def get(self, item_id: str) -> Item[T]:
        with get_db_session() as session:
            row = session.execute(
                select(partition_items.c.version, partition_items.c.data).where(self._key(item_id))
            ).first()
        if not row:
            raise ItemNotFound(self.name, item_id)
        return Item(id=item_id, data=self._serializer.deserialize(row.data, self.model), version=row.version)

    def save(self, item: Item[T]) -> Item[T]:
        raw = self._serializer.serialize(item.data)
        version = new_version()

        if item.version is None:
            try:
                with get_db_session() as session:
                    session.execute(
                        insert(partition_items).values(
                            partition=self.name,
                            item_id=item.id,
                            version=version,
                            data=raw,
                        )
                    )
            except IntegrityError:
                raise ItemAlreadyExists(self.name, item.id)
            return Item(id=item.id, data=item.data, version=version)

        with get_db_session() as session:
            result = session.execute(
                update(partition_items)
                .where(and_(self._key(item.id), partition_items.c.version == item.version))
                .values(version=version, data=raw, updated_at=func.now())
            )
            if result.rowcount == 0:
                # Nothing matched: distinguish a lost race from a vanished row
                exists = session.execute(
                    select(partition_items.c.version).where(self._key(item.id))
                ).first()
                if exists is None:
                    raise ItemNotFound(self.name, item.id)
                raise ItemVersionConflict(self.name, item.id, item.version)
        return Item(id=item.id, data=item.data, version=version)

    def scan(self) -> Iterator[Item[T]]:
        with get_db_session() as session:
            rows = session.execute(
                select(partition_items.c.item_id, partition_items.c.version, partition_items.c.data)
                .where(partition_items.c.partition == self.name)
                .order_by(partition_items.c.item_id)
            ).all()
        for row in rows:
            yield Item(id=row.item_id, data=self._serializer.deserialize(row.data, self.model), version=row.version)


class SqlPartitions:
    """Database-backed implementation of the Partitions factory."""

    def __init__(self, serializer: Optional[ItemSerializer] = None, ensure_schema: bool = True):
        self._serializer = serializer or ItemSerializer()
        if ensure_schema:
            create_all_tables()

    def get(self, name: str, model: Type[T]) -> SqlPartition[T]:
        return SqlPartition(name, model, self._serializer)
