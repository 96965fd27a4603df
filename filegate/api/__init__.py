"""HTTP transport: capability-gated file routes plus the admin surface."""
from fastapi import APIRouter

from . import admin, routes

router = APIRouter()
router.include_router(routes.router)
router.include_router(admin.router)

__all__ = ["router"]
