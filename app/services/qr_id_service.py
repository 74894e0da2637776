import secrets
from datetime import datetime

from app.schemas.qr import SLOT_COUNT, EmptySlot, QrCode

QR_ID_GROUPS = 4
QR_ID_GROUP_LENGTH = 5
_GROUP_MIN = 10000
_GROUP_MAX = 99999


def _random_group() -> str:
    return str(_GROUP_MIN + secrets.randbelow(_GROUP_MAX - _GROUP_MIN + 1))


def generate_qr_id() -> str:
    return "-".join(_random_group() for _ in range(QR_ID_GROUPS))


def generate_qr_ids(count: int) -> list[str]:
    """Return ``count`` well-formed ids. Collisions are not checked here."""
    if count < 1:
        raise ValueError("count must be a positive integer")
    return [generate_qr_id() for _ in range(count)]


def new_qr_code(qr_id: str, generated_at: datetime) -> QrCode:
    return QrCode(
        id=qr_id,
        generatedAt=generated_at,
        registeredAt=None,
        registeredBy=None,
        slots=[EmptySlot() for _ in range(SLOT_COUNT)],
        scans=[],
    )
