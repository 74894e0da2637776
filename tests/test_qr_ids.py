"""Identifier generation and request validation."""

import re

import pytest

from app.core.exceptions import QrError, QrErrorCode
from app.services.qr_id_service import generate_qr_ids, new_qr_code
from app.services.qr_validation_service import (
    check_api_password,
    coerce_quantity,
    normalize_qr_id,
    require_qr_id,
    require_uid,
)
from tests.conftest import EPOCH

QR_ID_SHAPE = re.compile(r"^\d{5}-\d{5}-\d{5}-\d{5}$")


class TestGenerateQrIds:
    @pytest.mark.parametrize("count", [1, 2, 25])
    def test_generates_requested_count(self, count):
        ids = generate_qr_ids(count)
        assert len(ids) == count
        assert all(QR_ID_SHAPE.match(qr_id) for qr_id in ids)

    def test_groups_stay_in_range(self):
        for qr_id in generate_qr_ids(200):
            for group in qr_id.split("-"):
                assert 10000 <= int(group) <= 99999

    def test_generated_ids_pass_validation(self):
        for qr_id in generate_qr_ids(20):
            assert normalize_qr_id(qr_id) == qr_id

    def test_rejects_non_positive_count(self):
        with pytest.raises(ValueError):
            generate_qr_ids(0)

    def test_new_qr_code_is_blank(self):
        qr = new_qr_code("12345-67890-12345-67890", EPOCH)
        assert qr.generatedAt == EPOCH
        assert qr.registeredAt is None
        assert qr.registeredBy is None
        assert len(qr.slots) == 5
        assert all(slot.empty for slot in qr.slots)
        assert qr.scans == []


class TestCoerceQuantity:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            (None, 1),
            (0, 1),
            (-4, 1),
            (3, 3),
            ("7", 7),
            (" 2 ", 2),
            ("0", 1),
            ("abc", 1),
            ("", 1),
            ("3abc", 3),
            ("2.5", 2),
            (2.5, 2),
            (float("nan"), 1),
            ([4], 1),
            (True, 1),
        ],
    )
    def test_coerces(self, raw, expected):
        assert coerce_quantity(raw) == expected


class TestNormalizeQrId:
    def test_trims_and_lowercases(self):
        assert normalize_qr_id("  11111-22222-33333-44444 ") == "11111-22222-33333-44444"

    @pytest.mark.parametrize(
        "raw",
        [
            "not-a-real-id",
            "11111-22222-33333",
            "11111-22222-33333-44444-55555",
            "1111-22222-33333-44444",
            "111111-22222-33333-44444",
            "1111a-22222-33333-44444",
            "+1111-22222-33333-44444",
            "11111--22222-33333-4444",
            12345,
            ["11111-22222-33333-44444"],
        ],
    )
    def test_rejects_malformed(self, raw):
        with pytest.raises(QrError) as exc:
            normalize_qr_id(raw)
        assert exc.value.code == QrErrorCode.invalid_id


class TestRequiredFields:
    @pytest.mark.parametrize("raw", [None, ""])
    def test_missing_id(self, raw):
        with pytest.raises(QrError) as exc:
            require_qr_id(raw)
        assert exc.value.code == QrErrorCode.missing_id

    @pytest.mark.parametrize("raw", [None, "", 42])
    def test_missing_uid(self, raw):
        with pytest.raises(QrError) as exc:
            require_uid(raw)
        assert exc.value.code == QrErrorCode.missing_uid

    def test_uid_passes_through(self):
        assert require_uid("user-a") == "user-a"


class TestApiPassword:
    def test_accepts_matching_password(self):
        check_api_password("secret", "secret")

    @pytest.mark.parametrize(
        "supplied,configured",
        [
            (None, "secret"),
            ("", "secret"),
            ("wrong", "secret"),
            ("secret", ""),
            (12345, "12345"),
        ],
    )
    def test_rejects(self, supplied, configured):
        with pytest.raises(QrError) as exc:
            check_api_password(supplied, configured)
        assert exc.value.code == QrErrorCode.unauthorized


class TestCorsOrigins:
    def test_splits_and_trims(self):
        from app.core.config import Settings

        settings = Settings(CORS_ORIGINS=" http://a.test/ ,,https://b.test")
        assert settings.cors_origins == ["http://a.test", "https://b.test"]
