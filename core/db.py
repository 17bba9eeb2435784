"""Engine, sessions and declarative base for the wallet database."""

import logging
import ssl
import time
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.orm import declarative_base, sessionmaker

import config

logger = logging.getLogger(__name__)


def resolve_database_url(raw_url=None):
    """
    Normalize the configured URL for SQLAlchemy.

    Postgres URLs (including Heroku/Neon style `postgres://`) are routed through
    the pg8000 driver. pg8000 does not understand `sslmode`, so it is stripped
    from the query string and returned separately.
    """
    raw_url = raw_url or config.DATABASE_URL
    if not raw_url:
        if config.TESTING:
            return make_url("sqlite:///:memory:"), None
        raise ValueError("DATABASE_URL environment variable is not set")

    if raw_url.startswith("postgres://"):
        raw_url = raw_url.replace("postgres://", "postgresql://", 1)

    url = make_url(raw_url)
    if url.get_backend_name() != "postgresql":
        return url, None

    sslmode = url.query.get("sslmode")
    url = url.set(drivername="postgresql+pg8000").difference_update_query(["sslmode", "channel_binding"])
    return url, sslmode


def _pg_connect_args(sslmode):
    if sslmode == "disable":
        return {}
    ssl_context = ssl.create_default_context()
    if not config.DB_SSL_VERIFY:
        # encrypted but unverified
        ssl_context.check_hostname = False
        ssl_context.verify_mode = ssl.CERT_NONE
    return {"ssl_context": ssl_context}


def build_engine(url, sslmode=None):
    if url.get_backend_name() == "sqlite":
        return create_engine(url, echo=False, connect_args={"check_same_thread": False})

    return create_engine(
        url,
        pool_size=config.DB_POOL_SIZE,
        max_overflow=config.DB_MAX_OVERFLOW,
        pool_timeout=config.DB_POOL_TIMEOUT_SECONDS,
        pool_recycle=config.DB_POOL_RECYCLE_SECONDS,
        pool_pre_ping=True,
        echo=False,
        connect_args=_pg_connect_args(sslmode),
    )


def install_slow_query_logging(target_engine, threshold_ms=None):
    threshold_ms = config.SLOW_QUERY_MS if threshold_ms is None else threshold_ms
    if threshold_ms <= 0:
        return

    slow_logger = logging.getLogger("db.slow_query")

    @event.listens_for(target_engine, "before_cursor_execute")
    def _started(conn, cursor, statement, parameters, context, executemany):
        context._tsu_query_started = time.perf_counter()

    @event.listens_for(target_engine, "after_cursor_execute")
    def _finished(conn, cursor, statement, parameters, context, executemany):
        started = getattr(context, "_tsu_query_started", None)
        if started is None:
            return
        elapsed_ms = (time.perf_counter() - started) * 1000.0
        if elapsed_ms >= threshold_ms:
            stmt = " ".join(str(statement).split())[:500]
            slow_logger.warning(f"SLOW_DB_QUERY | ms={elapsed_ms:.1f} | stmt={stmt}")


DATABASE_URL, _SSLMODE = resolve_database_url()
engine = build_engine(DATABASE_URL, _SSLMODE)
install_slow_query_logging(engine)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """FastAPI dependency yielding a request-scoped session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_context():
    """Session for code outside a request (scheduler jobs, scripts). Rolls back on error."""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def create_tables():
    import models  # noqa: F401  registers mappers on Base

    Base.metadata.create_all(bind=engine)
    logger.info(f"Database tables ensured on {engine.url.get_backend_name()}")
