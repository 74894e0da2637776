"""QR code lookup, batch generation and slot claim/release.

Claims and releases are read-modify-write cycles against the document store.
By default every write is conditioned on the version that was read, and a
conflicting write is retried from a fresh read with the same slot selection.
So two concurrent claims can never land on the same slot. With
``conditional_writes=False`` the write is an unconditional merge and the last
writer wins.

Every public method returns a ``QrResult``. Taxonomy errors and store
failures are reported in the result instead of being raised.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable

from app.core.exceptions import UNEXPECTED_ERROR, QrError, StoreError, VersionConflict
from app.schemas.qr import QrBatchCreated, QrCode
from app.services.qr_id_service import generate_qr_ids, new_qr_code
from app.services.qr_repository import QrRepository
from app.services.qr_validation_service import (
    check_api_password,
    coerce_quantity,
    normalize_qr_id,
    require_qr_id,
    require_uid,
)
from app.services.slot_service import SlotChange, claim_slot, release_slot

logger = logging.getLogger(__name__)


class Outcome(str, Enum):
    found = "found"
    updated = "updated"
    generated = "generated"


@dataclass(frozen=True)
class QrResult:
    outcome: Outcome | None = None
    data: Any = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_scan_id() -> str:
    return uuid.uuid4().hex


class QrService:
    def __init__(
        self,
        repository: QrRepository,
        api_password: str,
        conditional_writes: bool = True,
        write_attempts: int = 5,
        retry_backoff: float = 0.05,
        clock: Callable[[], datetime] = utc_now,
        scan_id_factory: Callable[[], str] = new_scan_id,
    ):
        self._repository = repository
        self._api_password = api_password
        self._conditional_writes = conditional_writes
        self._write_attempts = max(write_attempts, 1)
        self._retry_backoff = retry_backoff
        self._clock = clock
        self._scan_id_factory = scan_id_factory

    async def generate_batch(self, auth: Any, quantity: Any = None) -> QrResult:
        return await self._guard("generate", None, Outcome.generated, self._generate_batch(auth, quantity))

    async def get(self, qr_id: Any) -> QrResult:
        return await self._guard("get", qr_id, Outcome.found, self._get(qr_id))

    async def claim(self, qr_id: Any, uid: Any) -> QrResult:
        return await self._guard("claim", qr_id, Outcome.updated, self._claim(qr_id, uid))

    async def release(self, qr_id: Any, uid: Any) -> QrResult:
        return await self._guard("release", qr_id, Outcome.updated, self._release(qr_id, uid))

    async def _guard(self, operation: str, qr_id: Any, outcome: Outcome, work: Awaitable[Any]) -> QrResult:
        try:
            data = await work
        except QrError as exc:
            logger.info("%s rejected for %r: %s", operation, qr_id, exc.code.value)
            return QrResult(error=exc.code.value)
        except StoreError:
            logger.exception("%s failed for %r", operation, qr_id)
            return QrResult(error=UNEXPECTED_ERROR)
        except Exception:
            # Stores that do not wrap their driver errors end up here.
            logger.exception("%s failed unexpectedly for %r", operation, qr_id)
            return QrResult(error=UNEXPECTED_ERROR)
        return QrResult(outcome=outcome, data=data)

    async def _generate_batch(self, auth: Any, quantity: Any) -> QrBatchCreated:
        check_api_password(auth, self._api_password)
        count = coerce_quantity(quantity)
        now = self._clock()
        qrs = [new_qr_code(qr_id, now) for qr_id in generate_qr_ids(count)]
        await self._repository.create_many(qrs)
        logger.info("Generated %d QR code(s)", count)
        return QrBatchCreated(quantity=count)

    async def _get(self, raw_id: Any) -> QrCode:
        qr_id = normalize_qr_id(require_qr_id(raw_id))
        return (await self._repository.load(qr_id)).qr

    async def _claim(self, raw_id: Any, raw_uid: Any) -> QrCode:
        require_qr_id(raw_id)
        uid = require_uid(raw_uid)
        qr_id = normalize_qr_id(raw_id)

        def transition(qr: QrCode) -> SlotChange:
            return claim_slot(qr, uid, now=self._clock(), scan_id=self._scan_id_factory())

        qr = await self._apply(qr_id, transition)
        logger.info("uid %s claimed a slot on %s", uid, qr_id)
        return qr

    async def _release(self, raw_id: Any, raw_uid: Any) -> QrCode:
        require_qr_id(raw_id)
        uid = require_uid(raw_uid)
        qr_id = normalize_qr_id(raw_id)

        def transition(qr: QrCode) -> SlotChange:
            return release_slot(qr, uid, now=self._clock(), scan_id=self._scan_id_factory())

        qr = await self._apply(qr_id, transition)
        logger.info("uid %s released its slot on %s", uid, qr_id)
        return qr

    async def _apply(self, qr_id: str, transition: Callable[[QrCode], SlotChange]) -> QrCode:
        for attempt in range(1, self._write_attempts + 1):
            stored = await self._repository.load(qr_id)
            change = transition(stored.qr)
            expected = stored.version if self._conditional_writes else None
            try:
                await self._repository.merge(qr_id, change.fields, expected_version=expected)
            except VersionConflict:
                logger.info("Write conflict on %s (attempt %d/%d)", qr_id, attempt, self._write_attempts)
                if attempt < self._write_attempts and self._retry_backoff > 0:
                    await asyncio.sleep(self._retry_backoff * (2 ** (attempt - 1)))
                continue
            # Answer with what the store holds, not the local copy.
            return (await self._repository.load(qr_id)).qr
        raise StoreError(f"gave up on {qr_id} after {self._write_attempts} conflicting writes")
