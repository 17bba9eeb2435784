from fastapi import APIRouter

from . import contact, registrations

router = APIRouter(tags=["Support"])

router.include_router(registrations.router)
router.include_router(contact.router)
