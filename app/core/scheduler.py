from apscheduler.schedulers.asyncio import AsyncIOScheduler
from app.core.db import AsyncSessionLocal

from app.services.billing.invoice_overdue_service import auto_mark_overdue_invoices
from app.services.companies.company_service import expire_lapsed_trials
from app.utils.logger import get_logger

logger = get_logger(__name__)

# missed runs collapse into a single run
scheduler = AsyncIOScheduler(
    timezone="UTC",
    job_defaults={"coalesce": True, "max_instances": 1, "misfire_grace_time": 3600},
)


@scheduler.scheduled_job("cron", hour=0, minute=5, id="mark_overdue_invoices")  # daily at 00:05 UTC
async def mark_overdue_invoices_job():
    async with AsyncSessionLocal() as db:
        marked = await auto_mark_overdue_invoices(db)
    logger.info("Overdue invoice job finished", extra={"marked": marked})


@scheduler.scheduled_job("cron", hour=0, minute=10, id="expire_lapsed_trials")
async def expire_lapsed_trials_job():
    async with AsyncSessionLocal() as db:
        expired = await expire_lapsed_trials(db)
    logger.info("Trial expiry job finished", extra={"expired": expired})
