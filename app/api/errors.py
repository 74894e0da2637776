from fastapi.responses import JSONResponse

from app.core.exceptions import UNEXPECTED_ERROR, QrErrorCode

ERROR_RESPONSES: dict[str, tuple[int, str]] = {
    QrErrorCode.unauthorized.value: (401, "API password missing or incorrect"),
    QrErrorCode.missing_id.value: (400, "No QR code was provided"),
    QrErrorCode.invalid_id.value: (400, "Invalid QR code"),
    QrErrorCode.not_found.value: (404, "QR code not found"),
    QrErrorCode.missing_uid.value: (400, "No user id was provided"),
    QrErrorCode.already_registered.value: (403, "User is already linked to this QR code"),
    QrErrorCode.no_slots_available.value: (403, "There are no free slots left on this QR code"),
    QrErrorCode.user_not_registered.value: (404, "User is not linked to this QR code"),
    UNEXPECTED_ERROR: (500, "Internal server error"),
}


def error_response(code: str) -> JSONResponse:
    status_code, message = ERROR_RESPONSES.get(code, ERROR_RESPONSES[UNEXPECTED_ERROR])
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message}, "data": None},
    )
