from fastapi import APIRouter

from file_probe.api.routes import probe

api_router = APIRouter()
api_router.include_router(probe.router)
