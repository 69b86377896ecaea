from datetime import date
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.billing.invoice_models import Invoice
from app.utils.activity_helpers import emit_activity
from app.utils.logger import get_logger
from app.constants.activity_codes import ActivityCode
from app.services.billing.invoice_overdue_core import _mark_overdue_stmt

logger = get_logger(__name__)


async def auto_mark_overdue_invoices(db: AsyncSession, today: date | None = None) -> int:
    today = today or date.today()

    stmt = _mark_overdue_stmt(
        extra_where=[Invoice.due_date < today],
        updated_by_id=None,  # system action
    )

    result = await db.execute(stmt)
    marked = result.all()

    if not marked:
        return 0

    for row in marked:
        await emit_activity(
            db,
            user_id=None,
            username="system",
            code=ActivityCode.MARK_INVOICE_OVERDUE,
            company_id=row.company_id,
            actor_role="System",
            actor_email="system",
            target_name=row.invoice_number,
            changes=f"due {row.due_date}, checked on {today}",
        )

    await db.commit()
    logger.info("Invoices marked overdue", extra={"count": len(marked)})
    return len(marked)
