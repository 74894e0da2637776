"""Claim and release transitions over a QR code's slots.

These functions never touch the store. They take a snapshot and return the
next snapshot together with the fields that changed, ready for a
merge-update.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from app.core.exceptions import QrError, QrErrorCode
from app.schemas.qr import EmptySlot, FulfilledSlot, QrCode, ScanEvent


@dataclass(frozen=True)
class SlotChange:
    qr: QrCode
    slot_index: int
    changed_fields: tuple[str, ...]

    @property
    def fields(self) -> dict[str, Any]:
        return self.qr.model_dump(mode="json", include=set(self.changed_fields))


def find_slot_of(qr: QrCode, uid: str) -> int | None:
    for index, slot in enumerate(qr.slots):
        if isinstance(slot, FulfilledSlot) and slot.uid == uid:
            return index
    return None


def first_empty_slot(qr: QrCode) -> int | None:
    for index, slot in enumerate(qr.slots):
        if isinstance(slot, EmptySlot):
            return index
    return None


def claim_slot(qr: QrCode, uid: str, now: datetime, scan_id: str) -> SlotChange:
    if find_slot_of(qr, uid) is not None:
        raise QrError(QrErrorCode.already_registered)

    index = first_empty_slot(qr)
    if index is None:
        raise QrError(QrErrorCode.no_slots_available)

    slots = list(qr.slots)
    slots[index] = FulfilledSlot(uid=uid, scanId=scan_id)
    update: dict[str, Any] = {
        "slots": slots,
        "scans": [*qr.scans, ScanEvent(scanId=scan_id, scannedAt=now, successful=True)],
    }
    # Every claim of slot 0 re-stamps the registration, even after a release.
    if index == 0:
        update["registeredAt"] = now
        update["registeredBy"] = uid

    return SlotChange(qr=qr.model_copy(update=update), slot_index=index, changed_fields=tuple(update))


def release_slot(qr: QrCode, uid: str, now: datetime, scan_id: str) -> SlotChange:
    """Empty the slot held by ``uid``. Registration fields are left as they are."""
    index = find_slot_of(qr, uid)
    if index is None:
        raise QrError(QrErrorCode.user_not_registered)

    slots = list(qr.slots)
    slots[index] = EmptySlot()
    update = {
        "slots": slots,
        "scans": [*qr.scans, ScanEvent(scanId=scan_id, scannedAt=now, successful=True)],
    }
    return SlotChange(qr=qr.model_copy(update=update), slot_index=index, changed_fields=tuple(update))
