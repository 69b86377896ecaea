from enum import Enum

from app.models.enums.invoice_status import InvoiceStatus


class DocumentKind(str, Enum):
    invoice = "invoice"
    quote = "quote"

    @property
    def number_prefix(self) -> str:
        return "INV" if self is DocumentKind.invoice else "QUO"

    @property
    def default_status(self) -> InvoiceStatus:
        return InvoiceStatus.draft

    @property
    def accepts_payments(self) -> bool:
        """Quotes carry no balance until converted into an invoice."""
        return self is DocumentKind.invoice
