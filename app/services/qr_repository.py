import logging
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from app.core.exceptions import DocumentMissing, QrError, QrErrorCode, StoreError
from app.db.document_store import DocumentStore
from app.schemas.qr import QrCode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredQr:
    qr: QrCode
    version: int


class QrRepository:
    def __init__(self, store: DocumentStore, collection: str = "qr-ids"):
        self._store = store
        self._collection = collection

    async def load(self, qr_id: str) -> StoredQr:
        stored = await self._store.get(self._collection, qr_id)
        if stored is None or not stored.data:
            raise QrError(QrErrorCode.not_found)
        try:
            qr = QrCode.model_validate(stored.data)
        except ValidationError as exc:
            raise StoreError(f"{self._collection}/{qr_id} is not a valid QR document") from exc
        return StoredQr(qr=qr, version=stored.version)

    async def merge(self, qr_id: str, fields: dict[str, Any], expected_version: int | None = None) -> int:
        try:
            return await self._store.update(self._collection, qr_id, fields, expected_version=expected_version)
        except DocumentMissing as exc:
            raise QrError(QrErrorCode.not_found) from exc

    async def create_many(self, qrs: list[QrCode]) -> None:
        documents = {qr.id: qr.model_dump(mode="json") for qr in qrs}
        await self._store.batch_put(self._collection, documents)
        logger.debug("Stored %d QR document(s) in %s", len(documents), self._collection)
