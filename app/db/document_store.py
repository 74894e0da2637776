"""Document stores keyed by (collection, document id).

A store exposes single-document reads, full writes, all-or-nothing batch
writes and merge-updates. Every document carries an integer version that is
bumped on each write; ``update`` can be made conditional on it, which is what
the slot allocation code uses to detect concurrent writers.
"""

import copy
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from threading import Lock
from typing import Any, Callable, Mapping

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from app.core.exceptions import DocumentMissing, StoreError, VersionConflict
from app.db.models import Document

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredDocument:
    data: dict[str, Any]
    version: int


class DocumentStore(ABC):
    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> StoredDocument | None:
        ...

    @abstractmethod
    async def put(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        ...

    @abstractmethod
    async def batch_put(self, collection: str, documents: Mapping[str, dict[str, Any]]) -> None:
        """Write every document or none of them."""

    @abstractmethod
    async def update(
        self,
        collection: str,
        doc_id: str,
        fields: dict[str, Any],
        expected_version: int | None = None,
    ) -> int:
        """Merge ``fields`` into an existing document and return its new version.

        Raises ``DocumentMissing`` when the document does not exist and
        ``VersionConflict`` when ``expected_version`` is given and the stored
        version differs.
        """


class MemoryDocumentStore(DocumentStore):
    def __init__(self):
        self._lock = Lock()
        self._collections: dict[str, dict[str, StoredDocument]] = {}

    async def get(self, collection: str, doc_id: str) -> StoredDocument | None:
        with self._lock:
            stored = self._collections.get(collection, {}).get(doc_id)
            if stored is None:
                return None
            return StoredDocument(data=copy.deepcopy(stored.data), version=stored.version)

    async def put(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        await self.batch_put(collection, {doc_id: data})

    async def batch_put(self, collection: str, documents: Mapping[str, dict[str, Any]]) -> None:
        with self._lock:
            docs = self._collections.setdefault(collection, {})
            for doc_id, data in documents.items():
                previous = docs.get(doc_id)
                version = previous.version + 1 if previous else 1
                docs[doc_id] = StoredDocument(data=copy.deepcopy(data), version=version)

    async def update(
        self,
        collection: str,
        doc_id: str,
        fields: dict[str, Any],
        expected_version: int | None = None,
    ) -> int:
        with self._lock:
            docs = self._collections.get(collection, {})
            stored = docs.get(doc_id)
            if stored is None:
                raise DocumentMissing(collection, doc_id)
            if expected_version is not None and stored.version != expected_version:
                raise VersionConflict(collection, doc_id, expected_version, stored.version)
            merged = {**stored.data, **copy.deepcopy(fields)}
            docs[doc_id] = StoredDocument(data=merged, version=stored.version + 1)
            return stored.version + 1


class SqlDocumentStore(DocumentStore):
    """Documents stored as JSON rows, one table for every collection.

    Sessions are synchronous, so each call runs in the threadpool.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    async def _call(self, fn, *args):
        try:
            return await run_in_threadpool(fn, *args)
        except SQLAlchemyError as exc:
            raise StoreError(str(exc)) from exc

    async def get(self, collection: str, doc_id: str) -> StoredDocument | None:
        return await self._call(self._get, collection, doc_id)

    async def put(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        await self._call(self._write, collection, {doc_id: data})

    async def batch_put(self, collection: str, documents: Mapping[str, dict[str, Any]]) -> None:
        await self._call(self._write, collection, dict(documents))

    async def update(
        self,
        collection: str,
        doc_id: str,
        fields: dict[str, Any],
        expected_version: int | None = None,
    ) -> int:
        return await self._call(self._update, collection, doc_id, fields, expected_version)

    def _get(self, collection: str, doc_id: str) -> StoredDocument | None:
        with self._session_factory() as db:
            row = db.get(Document, (collection, doc_id))
            if row is None:
                return None
            return StoredDocument(data=copy.deepcopy(row.data), version=row.version)

    def _write(self, collection: str, documents: dict[str, dict[str, Any]]) -> None:
        with self._session_factory() as db:
            for doc_id, data in documents.items():
                row = db.get(Document, (collection, doc_id))
                if row is None:
                    db.add(Document(collection=collection, doc_id=doc_id, data=copy.deepcopy(data), version=1))
                else:
                    row.data = copy.deepcopy(data)
                    row.version = row.version + 1
                db.flush()
            db.commit()
        logger.debug("Wrote %d document(s) to %s", len(documents), collection)

    def _update(
        self,
        collection: str,
        doc_id: str,
        fields: dict[str, Any],
        expected_version: int | None,
    ) -> int:
        with self._session_factory() as db:
            row = db.get(Document, (collection, doc_id))
            if row is None:
                raise DocumentMissing(collection, doc_id)
            if expected_version is not None and row.version != expected_version:
                raise VersionConflict(collection, doc_id, expected_version, row.version)

            read_version = row.version
            merged = {**row.data, **copy.deepcopy(fields)}
            criteria = [Document.collection == collection, Document.doc_id == doc_id]
            if expected_version is not None:
                criteria.append(Document.version == read_version)
            matched = (
                db.query(Document)
                .filter(*criteria)
                .update(
                    {
                        Document.data: merged,
                        Document.version: Document.version + 1,
                        Document.updated_at: datetime.utcnow(),
                    },
                    synchronize_session=False,
                )
            )
            if matched != 1:
                db.rollback()
                if expected_version is None:
                    raise DocumentMissing(collection, doc_id)
                raise VersionConflict(collection, doc_id, read_version)
            db.commit()
            return read_version + 1
