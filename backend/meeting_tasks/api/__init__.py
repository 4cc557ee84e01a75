from fastapi import APIRouter

from .health import router as health_router

api = APIRouter()
api.include_router(health_router)
