"""Flat JSON record store.

The whole database is one JSON document holding a top-level array per
resource. Records are plain dicts; every mutation rewrites the document.
There is no locking, so concurrent writers can lose updates (last write wins).
"""

import json
import logging
import os
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional

from chatroom.errors import NotFoundError

logger = logging.getLogger(__name__)

RESOURCES = ("users", "assistants", "files", "chat_threads", "messages")

SORT_KEY = "_sort"
ORDER_KEY = "_order"


def empty_database() -> Dict[str, list]:
    return {resource: [] for resource in RESOURCES}


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def sort_key(value):
    """Total order over JSON values: missing first, then grouped by kind."""
    if value is None:
        return (0, "")
    if isinstance(value, bool):
        return (1, int(value))
    if isinstance(value, (int, float)):
        return (2, value)
    if isinstance(value, str):
        return (3, value)
    return (4, json.dumps(value, sort_keys=True))


def _field_matches(value, expected) -> bool:
    if value == expected:
        return True
    # query-string values are always text
    if isinstance(expected, str) and value is not None and not isinstance(value, str):
        return json.dumps(value) == expected
    return False


def matches(record: Mapping, filters: Mapping) -> bool:
    return all(_field_matches(record.get(key), value) for key, value in filters.items())


class FlatStore:
    """CRUD-by-filter access to the collections of one JSON document.

    Subclasses decide where the document lives by implementing ``load`` and
    ``save``.
    """

    def load(self) -> Dict[str, list]:
        raise NotImplementedError

    def save(self, db: Dict[str, list]) -> None:
        raise NotImplementedError

    def resources(self) -> List[str]:
        return list(self.load().keys())

    def _collection(self, db: Dict[str, list], resource: str) -> list:
        if resource not in db:
            raise NotFoundError(f'Resource "{resource}" not found')
        return db[resource]

    def _index(self, collection: list, id: str) -> int:
        for index, record in enumerate(collection):
            if record.get("id") == id:
                return index
        raise NotFoundError(f'Item with ID "{id}" not found')

    def list(self, resource: str, filters: Optional[Mapping] = None) -> List[dict]:
        filters = dict(filters or {})
        sort_field = filters.pop(SORT_KEY, None)
        order = filters.pop(ORDER_KEY, "asc")

        records = [record for record in self._collection(self.load(), resource) if matches(record, filters)]
        if sort_field:
            records.sort(
                key=lambda record: sort_key(record.get(sort_field)),
                reverse=str(order).lower() == "desc",
            )
        return records

    def find_one(self, resource: str, filters: Mapping) -> Optional[dict]:
        records = self.list(resource, filters)
        return records[0] if records else None

    def get(self, resource: str, id: str) -> dict:
        collection = self._collection(self.load(), resource)
        return collection[self._index(collection, id)]

    def create(self, resource: str, data: Mapping) -> dict:
        db = self.load()
        collection = self._collection(db, resource)
        record = dict(data)
        record["id"] = record.get("id") or str(uuid.uuid4())
        record["createdAt"] = record.get("createdAt") or now_iso()
        collection.append(record)
        self.save(db)
        logger.debug("Created %s/%s", resource, record["id"])
        return record

    def replace(self, resource: str, id: str, data: Mapping) -> dict:
        db = self.load()
        collection = self._collection(db, resource)
        index = self._index(collection, id)
        collection[index] = {**collection[index], **data, "id": id}
        self.save(db)
        logger.debug("Replaced %s/%s", resource, id)
        return collection[index]

    def patch(self, resource: str, id: str, data: Mapping) -> dict:
        db = self.load()
        collection = self._collection(db, resource)
        index = self._index(collection, id)
        collection[index] = {**collection[index], **data}
        self.save(db)
        logger.debug("Patched %s/%s", resource, id)
        return collection[index]

    def delete(self, resource: str, id: str) -> dict:
        db = self.load()
        collection = self._collection(db, resource)
        record = collection.pop(self._index(collection, id))
        self.save(db)
        logger.debug("Deleted %s/%s", resource, id)
        return record

    def delete_where(self, resource: str, filters: Mapping) -> int:
        db = self.load()
        collection = self._collection(db, resource)
        kept = [record for record in collection if not matches(record, filters)]
        removed = len(collection) - len(kept)
        if removed:
            db[resource] = kept
            self.save(db)
            logger.debug("Deleted %d record(s) from %s", removed, resource)
        return removed


class MemoryStore(FlatStore):
    """Store kept in process memory. Nothing survives a restart."""

    def __init__(self, data: Optional[Dict[str, list]] = None):
        self._db = data if data is not None else empty_database()

    def load(self) -> Dict[str, list]:
        return self._db

    def save(self, db: Dict[str, list]) -> None:
        self._db = db


class JsonFileStore(FlatStore):
    """Store backed by a JSON file, re-read before and rewritten after each mutation."""

    def __init__(self, path: str):
        self.path = path
        if not os.path.exists(path):
            logger.info("Creating initial database at %s", path)
            self.save(empty_database())

    def load(self) -> Dict[str, list]:
        with open(self.path, encoding="utf-8") as f:
            return json.load(f)

    def save(self, db: Dict[str, list]) -> None:
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(db, f, indent=2)
