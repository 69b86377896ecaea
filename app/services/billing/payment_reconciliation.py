"""
Invoice balance bookkeeping for payment create / update / delete.

Pure functions: they take the invoice's current balance state and return the
next one, or raise ``InvalidAmountError``. Persistence and row locking are the
caller's job (see ``payment_service``).
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from app.core.exceptions import InvalidAmountError
from app.models.enums.invoice_status import InvoiceStatus
from app.utils.decimal_utils import to_decimal, ZERO


@dataclass(frozen=True)
class BalanceState:
    paid_amount: Decimal
    status: InvoiceStatus
    paid_at: datetime | None

    @classmethod
    def of(cls, invoice) -> "BalanceState":
        return cls(
            paid_amount=to_decimal(invoice.paid_amount),
            status=invoice.status,
            paid_at=invoice.paid_at,
        )


def apply_to_invoice(invoice, state: BalanceState) -> None:
    invoice.paid_amount = state.paid_amount
    invoice.balance_due = to_decimal(invoice.total) - state.paid_amount
    invoice.status = state.status
    invoice.paid_at = state.paid_at


def remaining_balance(total, paid_amount) -> Decimal:
    return to_decimal(total) - to_decimal(paid_amount)


def _settle(total: Decimal, new_paid: Decimal, prior: BalanceState, now: datetime) -> BalanceState:
    if new_paid >= total:
        return BalanceState(new_paid, InvoiceStatus.paid, now)
    if new_paid > ZERO:
        return BalanceState(new_paid, InvoiceStatus.partially_paid, None)
    # nothing paid: a paid invoice falls back to sent, anything else keeps its status
    status = InvoiceStatus.sent if prior.status == InvoiceStatus.paid else prior.status
    return BalanceState(ZERO, status, None)


# =====================================================
# CREATE
# =====================================================
def apply_payment_created(total, state: BalanceState, amount, now: datetime) -> BalanceState:
    total = to_decimal(total)
    amount = to_decimal(amount)

    remaining = total - state.paid_amount
    if amount > remaining:
        raise InvalidAmountError(
            "Payment amount exceeds remaining balance",
            {"remaining_balance": remaining},
        )

    new_paid = state.paid_amount + amount
    if new_paid >= total:
        return BalanceState(new_paid, InvoiceStatus.paid, now)
    return BalanceState(new_paid, InvoiceStatus.partially_paid, None)


# =====================================================
# UPDATE
# =====================================================
def apply_payment_updated(
    total,
    state: BalanceState,
    old_amount,
    new_amount,
    now: datetime,
) -> BalanceState:
    total = to_decimal(total)
    old_amount = to_decimal(old_amount)
    new_amount = to_decimal(new_amount)

    if new_amount == old_amount:
        return state

    new_paid = state.paid_amount + (new_amount - old_amount)

    if new_paid > total:
        raise InvalidAmountError(
            "Updated payment amount would exceed invoice total",
            {"max_amount": total - (state.paid_amount - old_amount)},
        )
    if new_paid < ZERO:
        raise InvalidAmountError("Payment amount cannot be negative")

    return _settle(total, new_paid, state, now)


# =====================================================
# DELETE
# =====================================================
def apply_payment_deleted(total, state: BalanceState, amount, now: datetime) -> BalanceState:
    total = to_decimal(total)
    new_paid = max(ZERO, state.paid_amount - to_decimal(amount))
    return _settle(total, new_paid, state, now)
