from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
import logging
import pytz

from config import PRICE_REFRESH_MINUTES
from core.db import get_db_context

logger = logging.getLogger(__name__)

# Global scheduler instance, started from the app lifespan
scheduler = BackgroundScheduler(timezone=pytz.utc)


# ========= Scheduled Tasks =========

def refresh_exchange_rates():
    """Pull ETH/BTC prices from CoinGecko into exchange_rates."""
    from routers.wallet.service import refresh_exchange_rates as wallet_refresh_exchange_rates

    logger.info("Running scheduled task: refresh_exchange_rates")
    try:
        with get_db_context() as db:
            if not wallet_refresh_exchange_rates(db):
                logger.warning("Price feed unavailable, exchange rates left unchanged")
    except Exception as e:
        logger.error(f"refresh_exchange_rates failed: {e}", exc_info=True)


# ========= Scheduler Setup =========

def start_scheduler():
    if scheduler.running:
        return scheduler

    scheduler.add_job(
        refresh_exchange_rates,
        IntervalTrigger(minutes=PRICE_REFRESH_MINUTES, timezone=pytz.utc),
        id="refresh_exchange_rates",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    scheduler.start()
    logger.info(f"Scheduler started | price refresh every {PRICE_REFRESH_MINUTES} min")
    return scheduler


def stop_scheduler():
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
