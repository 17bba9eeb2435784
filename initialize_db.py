"""
Script to initialize database tables and default data for the TSU wallet.
Run this script after setting up your database connection.

Usage:
    ADMIN_BOOTSTRAP_PASSWORD=... python initialize_db.py
"""

import logging

from auth import hash_password
from config import ADMIN_BOOTSTRAP_EMAIL, ADMIN_BOOTSTRAP_PASSWORD, DEFAULT_TSU_PRICE, ENVIRONMENT, LOG_LEVEL
from core.db import SessionLocal, create_tables
from core.logging import configure_logging
from models import SiteMetadata, TsuRate, User
from routers.content.service import default_metadata

logger = logging.getLogger(__name__)


def seed_super_admin(db) -> bool:
    email = ADMIN_BOOTSTRAP_EMAIL.lower()
    if db.query(User).filter(User.email == email).first():
        logger.info(f"Super admin {email} already exists")
        return False
    if not ADMIN_BOOTSTRAP_PASSWORD:
        logger.warning("ADMIN_BOOTSTRAP_PASSWORD not set, skipping super admin seed")
        return False
    db.add(
        User(
            email=email,
            password_hash=hash_password(ADMIN_BOOTSTRAP_PASSWORD),
            first_name="System",
            last_name="Administrator",
            role="super_admin",
        )
    )
    logger.info(f"Seeded super admin {email}")
    return True


def seed_tsu_rate(db) -> bool:
    if db.query(TsuRate).count():
        return False
    db.add(TsuRate(tsu_price=DEFAULT_TSU_PRICE))
    logger.info(f"Seeded default TSU price {DEFAULT_TSU_PRICE}")
    return True


def seed_site_metadata(db) -> bool:
    if db.query(SiteMetadata).count():
        return False
    db.add(SiteMetadata(**default_metadata()))
    logger.info("Seeded default site metadata")
    return True


def init_db():
    """Initialize database tables and default data"""
    create_tables()
    db = SessionLocal()
    try:
        seed_super_admin(db)
        seed_tsu_rate(db)
        seed_site_metadata(db)
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    configure_logging(environment=ENVIRONMENT, log_level=LOG_LEVEL)
    init_db()
    logger.info("Database initialization complete")
