from enum import Enum

class InvoiceStatus(str, Enum):
    draft = "draft"
    sent = "sent"
    partially_paid = "partially_paid"
    paid = "paid"
    overdue = "overdue"
    cancelled = "cancelled"

    @property
    def is_open(self) -> bool:
        """Issued to the customer and still owed."""
        return self in (InvoiceStatus.sent, InvoiceStatus.partially_paid, InvoiceStatus.overdue)

    @property
    def is_closed(self) -> bool:
        return self in (InvoiceStatus.paid, InvoiceStatus.cancelled)
