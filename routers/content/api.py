from fastapi import APIRouter

from . import content, site

router = APIRouter()

router.include_router(content.router)
router.include_router(site.router)
