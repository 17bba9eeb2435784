from fastapi import APIRouter

from . import account, login

router = APIRouter(tags=["Auth"])

router.include_router(login.router)
router.include_router(account.router)
