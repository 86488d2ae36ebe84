from fastapi import APIRouter

from .endpoints import health

router = APIRouter()
router.include_router(health.router, tags=["Health"])
