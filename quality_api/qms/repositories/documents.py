from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional, Sequence
from uuid import uuid4

from sqlalchemy import delete, func, select, update

from qms.db.base import utcnow
from qms.db.models.documents import Document
from .base import BaseRepository

logger = logging.getLogger(__name__)

# Keys managed by the store itself rather than kept inside the JSON payload.
_RESERVED_KEYS = ("id", "cycleId")


def new_document_id() -> str:
    """Generate an opaque document id."""
    return uuid4().hex


def to_record(doc: Document) -> dict[str, Any]:
    """Flatten a Document row into the record shape used across the API."""
    return {"id": doc.id, **(doc.data or {}), "cycleId": doc.cycle_id}


def _payload(data: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if k not in _RESERVED_KEYS}


class DocumentRepository(BaseRepository):
    """
    Generic collection/document CRUD over the ``documents`` table.

    Records are plain dicts: ``{"id": ..., <fields>, "cycleId": ...}``.
    """

    # PUBLIC_INTERFACE
    async def get_all(self, collection: str) -> List[dict[str, Any]]:
        """Return every record in the collection (insertion order; callers sort)."""
        stmt = (
            select(Document)
            .where(Document.collection == collection)
            .order_by(Document.created_at, Document.id)
        )
        return [to_record(d) for d in await self.scalars(stmt)]

    # PUBLIC_INTERFACE
    async def get_all_active(self, collection: str) -> List[dict[str, Any]]:
        """Return the records of the collection not yet archived into a cycle."""
        stmt = (
            select(Document)
            .where(Document.collection == collection, Document.cycle_id.is_(None))
            .order_by(Document.created_at, Document.id)
        )
        return [to_record(d) for d in await self.scalars(stmt)]

    # PUBLIC_INTERFACE
    async def get_by_id(self, collection: str, doc_id: str) -> Optional[dict[str, Any]]:
        """Return one record or None."""
        doc = await self._get(collection, doc_id)
        return to_record(doc) if doc else None

    # PUBLIC_INTERFACE
    async def count(self, collection: str) -> int:
        """Number of records in a collection."""
        stmt = select(func.count()).select_from(Document).where(Document.collection == collection)
        result = await self.execute(stmt)
        return int(result.scalar_one())

    # PUBLIC_INTERFACE
    async def add_or_update(self, collection: str, data: dict[str, Any]) -> dict[str, Any]:
        """
        Create or merge a record and return it.

        The id is taken from ``data["id"]`` or generated. Given keys overwrite
        stored keys; the others are kept. ``cycleId`` is taken from ``data``
        when present and reset to None otherwise.
        """
        doc_id = data.get("id") or new_document_id()
        cycle_id = data.get("cycleId")
        payload = _payload(data)

        doc = await self._get(collection, doc_id)
        if doc is None:
            doc = Document(collection=collection, id=doc_id, data=payload, cycle_id=cycle_id)
            await self.add(doc)
        else:
            doc.data = {**(doc.data or {}), **payload}
            doc.cycle_id = cycle_id
            doc.updated_at = utcnow()
        await self.commit()
        return to_record(doc)

    # PUBLIC_INTERFACE
    async def remove(self, collection: str, doc_id: str) -> bool:
        """Delete a record; returns False when it did not exist."""
        result = await self.execute(
            delete(Document).where(Document.collection == collection, Document.id == doc_id)
        )
        await self.commit()
        return bool(result.rowcount)

    # PUBLIC_INTERFACE
    async def remove_many(self, collection: str, doc_ids: Sequence[str]) -> int:
        """Delete several records of a collection in one statement."""
        if not doc_ids:
            return 0
        result = await self.execute(
            delete(Document).where(Document.collection == collection, Document.id.in_(list(doc_ids)))
        )
        await self.commit()
        return int(result.rowcount or 0)

    # PUBLIC_INTERFACE
    async def archive_quality_records(self, collection_names: Iterable[str], cycle_id: str) -> int:
        """
        Stamp ``cycle_id`` on every active record of the given collections.

        Runs as a single UPDATE, so either all records move to the cycle or none do.
        """
        names = list(dict.fromkeys(collection_names))
        if not names:
            return 0
        stmt = (
            update(Document)
            .where(Document.collection.in_(names), Document.cycle_id.is_(None))
            .values(cycle_id=cycle_id, updated_at=utcnow())
        )
        result = await self.execute(stmt)
        await self.commit()
        archived = int(result.rowcount or 0)
        logger.info("Archived %d records into cycle %s", archived, cycle_id)
        return archived

    # PUBLIC_INTERFACE
    async def seed_initial_data(self, collection: str, items: Iterable[dict[str, Any]]) -> int:
        """
        Insert ``items`` only if the collection is empty.

        ``customId`` on an item becomes its document id and is not stored.
        Returns the number of records written.
        """
        if await self.count(collection) > 0:
            return 0
        docs = []
        for item in items:
            fields = dict(item)
            doc_id = fields.pop("customId", None) or new_document_id()
            docs.append(Document(collection=collection, id=doc_id, data=_payload(fields), cycle_id=None))
        await self.add_all(docs)
        await self.commit()
        logger.info("Seeded %s with %d documents.", collection, len(docs))
        return len(docs)

    async def _get(self, collection: str, doc_id: str) -> Optional[Document]:
        stmt = select(Document).where(Document.collection == collection, Document.id == doc_id)
        return await self.scalar_one_or_none(stmt)
