from fastapi import APIRouter

from src.api.routes.subscribe import router as subscribe_router

api_router = APIRouter()
api_router.include_router(subscribe_router, prefix="/api", tags=["subscribe"])
