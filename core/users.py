"""User lookup facade.

Domains should not query the `User` model directly. Instead, call these helpers which
delegate to the Auth domain internal service API.
"""

from typing import List

from sqlalchemy.orm import Session


def get_user_by_id(db: Session, *, user_id: str):
    from routers.auth import service as auth_service

    return auth_service.get_user_by_id(db, user_id=user_id)


def get_user_by_id_for_update(db: Session, *, user_id: str):
    from routers.auth import service as auth_service

    return auth_service.get_user_by_id_for_update(db, user_id=user_id)


def get_user_by_email(db: Session, *, email: str):
    from routers.auth import service as auth_service

    return auth_service.get_user_by_email(db, email=email)


def lock_users(db: Session, *, user_ids: List[str]):
    """Lock several user rows in id order and return them keyed by id."""
    from routers.auth import service as auth_service

    return auth_service.lock_users(db, user_ids=user_ids)


def set_verified_wallet(db: Session, *, user_id: str, chain: str, address: str):
    from routers.auth import service as auth_service

    return auth_service.set_verified_wallet(db, user_id=user_id, chain=chain, address=address)
