"""Main API router."""
from fastapi import APIRouter

from app.api.v1 import devices, search, widgets

router = APIRouter()

router.include_router(widgets.router)
router.include_router(search.router)
router.include_router(devices.router)
