from decimal import Decimal
from sqlalchemy import update
from app.models.billing.invoice_models import Invoice
from app.models.enums.invoice_status import InvoiceStatus
from app.models.enums.document_kind import DocumentKind


def _mark_overdue_stmt(extra_where=None, updated_by_id=None):
    where_clause = [
        Invoice.kind == DocumentKind.invoice,
        Invoice.status == InvoiceStatus.sent,
        Invoice.paid_amount == Decimal("0.00"),
        Invoice.is_deleted == False,
    ]

    if extra_where is not None:
        where_clause.extend(extra_where)

    return (
        update(Invoice)
        .where(*where_clause)
        .values(
            status=InvoiceStatus.overdue,
            version=Invoice.version + 1,
            updated_by_id=updated_by_id,
        )
        .returning(Invoice.id, Invoice.company_id, Invoice.invoice_number, Invoice.due_date)
    )
