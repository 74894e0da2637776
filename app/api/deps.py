from functools import lru_cache

from fastapi import Depends

from app.core.config import Settings, get_settings
from app.db.document_store import DocumentStore, MemoryDocumentStore, SqlDocumentStore
from app.services.qr_repository import QrRepository
from app.services.qr_service import QrService


@lru_cache
def get_document_store() -> DocumentStore:
    settings = get_settings()
    if settings.DOCUMENT_STORE.lower() == "memory":
        return MemoryDocumentStore()

    from app.db.session import SessionLocal

    return SqlDocumentStore(SessionLocal)


def get_qr_service(
    store: DocumentStore = Depends(get_document_store),
    settings: Settings = Depends(get_settings),
) -> QrService:
    return QrService(
        QrRepository(store, collection=settings.QR_COLLECTION),
        api_password=settings.API_PASSWORD,
        conditional_writes=settings.QR_CONDITIONAL_WRITES,
        write_attempts=settings.QR_WRITE_ATTEMPTS,
        retry_backoff=settings.QR_WRITE_RETRY_BACKOFF,
    )
