"""In-memory entity collection mirrored to one database key."""

import json
from typing import Any, Callable, Generic, Iterable, TypeVar
from uuid import UUID

import structlog

from invoicemaker.database.base import Database

logger = structlog.get_logger(__name__)

E = TypeVar("E")


class PersistedCollection(Generic[E]):
    """Ordered list of entities kept in memory and stored whole as JSON.

    Every mutation builds a new list, writes it, and only then replaces the
    in-memory list. A failed write therefore leaves the collection as it was,
    and readers never see a half-applied change.
    """

    def __init__(
        self,
        db: Database,
        key: str,
        to_record: Callable[[E], dict[str, Any]],
        from_record: Callable[[Any], E],
    ):
        """Initialize and load the collection.

        Args:
            db: Database instance
            key: Key the serialized collection is stored under
            to_record: Entity encoder
            from_record: Entity decoder, raising ValueError on bad records
        """
        self.db = db
        self.key = key
        self._to_record = to_record
        self._from_record = from_record
        self._entities: list[E] = self._load()

    @property
    def entities(self) -> list[E]:
        return list(self._entities)

    def __len__(self) -> int:
        return len(self._entities)

    def get(self, entity_id: UUID) -> E | None:
        for entity in self._entities:
            if entity.id == entity_id:
                return entity
        return None

    def upsert(self, entity: E) -> None:
        """Replace the entity with the same id in place, or append it."""
        updated = list(self._entities)
        for index, existing in enumerate(updated):
            if existing.id == entity.id:
                updated[index] = entity
                break
        else:
            updated.append(entity)
        self._commit(updated)

    def remove(self, entity_ids: Iterable[UUID]) -> int:
        """Remove every entity whose id is in entity_ids.

        Returns:
            Number of entities removed (0 is not an error)
        """
        ids = set(entity_ids)
        updated = [entity for entity in self._entities if entity.id not in ids]
        removed = len(self._entities) - len(updated)
        self._commit(updated)
        return removed

    def reload(self) -> None:
        """Discard in-memory state and read the stored collection again."""
        self._entities = self._load()

    def _commit(self, updated: list[E]) -> None:
        payload = json.dumps([self._to_record(entity) for entity in updated])
        self.db.set_value(self.key, payload)
        self._entities = updated

    def _load(self) -> list[E]:
        raw = self.db.get_value(self.key)
        if raw is None:
            logger.debug("collection_empty", key=self.key)
            return []

        try:
            records = json.loads(raw)
            if not isinstance(records, list):
                raise ValueError(f"Expected a list, got {type(records).__name__}")
            entities = [self._from_record(record) for record in records]
        except (ValueError, RecursionError) as e:
            # Corrupted blob: drop it and start over rather than keep partial data
            logger.warning("collection_corrupted", key=self.key, error=str(e))
            self.db.delete_value(self.key)
            return []

        logger.debug("collection_loaded", key=self.key, count=len(entities))
        return entities
