from fastapi import APIRouter

from app.api.routes import health, qr

api_router = APIRouter()
api_router.include_router(health.router, tags=["health"])
api_router.include_router(qr.router, prefix="/qr", tags=["qr"])
