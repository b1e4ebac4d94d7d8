# main.py
"""Main application entry point: builds the PPE ledger and reports the dashboard figures."""

import logging
import time

import pytz
import schedule

from src.common.application_context import ApplicationContext, build_application_context
from src.common.config.settings import settings
from src.common.exceptions.custom_exceptions import ApplicationError, DatabaseError
from src.common.logger_config import setup_logging
from src.common.utils.date_utils import now

logger = logging.getLogger(__name__)


def log_dashboard_summary(context: ApplicationContext) -> None:
    """Logs the dashboard cards and alert lists."""
    logger.info(f"--- Dashboard at {now().strftime('%Y-%m-%d %H:%M:%S')} ---")
    try:
        summary = context.reports.dashboard_summary()
    except (DatabaseError, ApplicationError) as e:
        logger.error(f"❌ Could not build dashboard summary: {e}")
        return

    logger.info(
        f"Products: {summary.product_count} | Assignments: {summary.assignment_count} | "
        f"On hand: {summary.total_units_on_hand} | In transit: {summary.total_units_in_transit} | "
        f"Investment: ${summary.total_investment:,.0f}"
    )
    for name in summary.low_stock_products:
        logger.warning(f"⚠️ Low stock: {name}")
    for item in summary.low_stock_variants:
        logger.warning(f"⚠️ Low stock: {item.product_name} / {item.variant_name} ({item.on_hand} < {item.min_stock})")
    for item in summary.expiring_products:
        logger.warning(f"⏳ {item.product_name} expires {item.expiration_date} ({item.days_left} day(s), {item.status})")
    if summary.upcoming_renewals:
        logger.info(f"{summary.upcoming_renewals} assignment(s) due for renewal in the next {settings.RENEWAL_WARNING_DAYS} days")


if __name__ == "__main__":
    setup_logging()
    logger.info("PPE stock ledger started.")

    try:
        app_context = build_application_context()
    except (DatabaseError, ApplicationError) as e:
        logger.error(f"❌ Could not start: {e}")
        raise SystemExit(1)

    try:
        log_dashboard_summary(app_context)

        if settings.DASHBOARD_SCHEDULE_ENABLED:
            local_tz = pytz.timezone(settings.TIMEZONE)
            logger.info(f"Scheduling dashboard summary every day at {settings.DASHBOARD_REPORT_TIME} {settings.TIMEZONE}")
            schedule.every().day.at(settings.DASHBOARD_REPORT_TIME, local_tz).do(log_dashboard_summary, app_context)
            while True:
                schedule.run_pending()
                time.sleep(1)
    except KeyboardInterrupt:
        logger.info("Stopped by user.")
    finally:
        app_context.close()
