from fastapi import APIRouter

from .v1 import router as v1_router
from .v1.endpoints import bills, lnurl

api_router = APIRouter()
api_router.include_router(v1_router, prefix="/api/v1")
api_router.include_router(bills.router, prefix="/api")
api_router.include_router(lnurl.router, prefix="/.well-known")
