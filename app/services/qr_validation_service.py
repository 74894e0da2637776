import hmac
import math
import re
from typing import Any

from app.core.exceptions import QrError, QrErrorCode
from app.services.qr_id_service import QR_ID_GROUP_LENGTH, QR_ID_GROUPS

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def require_qr_id(raw: Any) -> Any:
    if raw is None or raw == "":
        raise QrError(QrErrorCode.missing_id)
    return raw


def require_uid(uid: Any) -> str:
    if not uid or not isinstance(uid, str):
        raise QrError(QrErrorCode.missing_uid)
    return uid


def normalize_qr_id(raw: Any) -> str:
    """Trim and lowercase ``raw`` and check it is four groups of five digits."""
    if not isinstance(raw, str):
        raise QrError(QrErrorCode.invalid_id)

    qr_id = raw.strip().lower()
    groups = qr_id.split("-")
    if len(groups) != QR_ID_GROUPS:
        raise QrError(QrErrorCode.invalid_id)
    for group in groups:
        if len(group) != QR_ID_GROUP_LENGTH or not (group.isascii() and group.isdigit()):
            raise QrError(QrErrorCode.invalid_id)
    return qr_id


def check_api_password(supplied: Any, configured: str) -> None:
    if not supplied or not configured or not isinstance(supplied, str):
        raise QrError(QrErrorCode.unauthorized)
    if not hmac.compare_digest(supplied.encode(), configured.encode()):
        raise QrError(QrErrorCode.unauthorized)


def coerce_quantity(raw: Any) -> int:
    """Batch sizes default to 1 and never go below it.

    Strings are read up to the first non-digit, so ``"3abc"`` and ``"2.5"``
    both count as their leading integer. Floats are truncated.
    """
    if isinstance(raw, bool):
        return 1
    if isinstance(raw, str):
        match = _LEADING_INT.match(raw)
        if match is None:
            return 1
        raw = int(match.group(1))
    elif isinstance(raw, float):
        if not math.isfinite(raw):
            return 1
        raw = int(raw)
    elif not isinstance(raw, int):
        return 1
    return max(raw, 1)
