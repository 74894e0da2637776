from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.api.deps import get_qr_service
from app.api.errors import error_response
from app.schemas.qr import QrBatchCreate, QrSlotRequest
from app.services.qr_service import Outcome, QrResult, QrService

router = APIRouter()

SUCCESS_STATUS = {
    Outcome.found: 200,
    Outcome.generated: 200,
    Outcome.updated: 201,
}


def _respond(result: QrResult) -> JSONResponse:
    if not result.ok:
        return error_response(result.error)
    data = result.data.model_dump(mode="json") if isinstance(result.data, BaseModel) else result.data
    return JSONResponse(status_code=SUCCESS_STATUS[result.outcome], content={"error": None, "data": data})


@router.post("")
async def generate(payload: QrBatchCreate | None = None, service: QrService = Depends(get_qr_service)):
    payload = payload or QrBatchCreate()
    return _respond(await service.generate_batch(payload.auth, payload.quantity))


@router.get("/{qr_id}")
async def get_qr(qr_id: str, service: QrService = Depends(get_qr_service)):
    return _respond(await service.get(qr_id))


@router.post("/{qr_id}/slots")
async def claim(qr_id: str, payload: QrSlotRequest | None = None, service: QrService = Depends(get_qr_service)):
    payload = payload or QrSlotRequest()
    return _respond(await service.claim(qr_id, payload.uid))


@router.delete("/{qr_id}/slots")
async def release(qr_id: str, payload: QrSlotRequest | None = None, service: QrService = Depends(get_qr_service)):
    payload = payload or QrSlotRequest()
    return _respond(await service.release(qr_id, payload.uid))
