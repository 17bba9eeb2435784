from fastapi import APIRouter

from . import paypal, purchase, transfers, verification

router = APIRouter()

router.include_router(transfers.router)
router.include_router(verification.router)
router.include_router(purchase.router)
router.include_router(paypal.router)
