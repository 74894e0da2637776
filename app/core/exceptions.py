import logging
from enum import Enum

from fastapi import FastAPI, Request

logger = logging.getLogger(__name__)

UNEXPECTED_ERROR = "internal/unexpected"


class QrErrorCode(str, Enum):
    unauthorized = "internal/unauthorized"
    missing_id = "bad-request/missing-id"
    invalid_id = "bad-request/invalid-id"
    not_found = "bad-request/not-found"
    missing_uid = "bad-request/missing-uid"
    already_registered = "forbidden/already-registered"
    no_slots_available = "forbidden/no-slots-available"
    user_not_registered = "not-found/user-not-registered"


class QrError(Exception):
    def __init__(self, code: QrErrorCode):
        self.code = code
        super().__init__(code.value)


class StoreError(Exception):
    """The document store failed or could not confirm a write."""


class DocumentMissing(StoreError):
    def __init__(self, collection: str, doc_id: str):
        self.collection = collection
        self.doc_id = doc_id
        super().__init__(f"{collection}/{doc_id} does not exist")


class VersionConflict(StoreError):
    def __init__(self, collection: str, doc_id: str, expected: int, actual: int | None = None):
        self.collection = collection
        self.doc_id = doc_id
        self.expected = expected
        self.actual = actual
        super().__init__(f"{collection}/{doc_id} changed since version {expected}")


def register_exception_handlers(app: FastAPI) -> None:
    # app.api.errors imports this module.
    from app.api.errors import error_response

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return error_response(UNEXPECTED_ERROR)
