from fastapi import APIRouter

from . import communications, dashboard, treasury, uploads, users

router = APIRouter(tags=["Admin"])

router.include_router(dashboard.router)
router.include_router(users.router)
router.include_router(treasury.router)
router.include_router(communications.router)
router.include_router(uploads.router)
