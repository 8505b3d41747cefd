from dataclasses import dataclass
from decimal import Decimal

from models.purchase_orders import OrderPaymentStatus
from utils.money import to_money, clamp_non_negative, ZERO


@dataclass(frozen=True)
class OrderBalance:
    balance_due: Decimal
    payment_status: OrderPaymentStatus


def derive_balance(total_amount, amount_paid) -> OrderBalance:
    """Balance due and payment status of an order from its total and what has been paid.

    balance_due is never negative; overpayment simply reads as paid.
    """
    amount_paid = to_money(amount_paid)
    balance_due = clamp_non_negative(to_money(total_amount) - amount_paid)

    if balance_due <= ZERO:
        status = OrderPaymentStatus.PAID
    elif amount_paid > ZERO:
        status = OrderPaymentStatus.PARTIALLY_PAID
    else:
        status = OrderPaymentStatus.UNPAID
    return OrderBalance(balance_due, status)


def apply_balance(order) -> bool:
    """Write the derived balance onto an order. Returns True when payment_status changed."""
    balance = derive_balance(order.total_amount, order.amount_paid)
    changed = order.payment_status != balance.payment_status
    order.balance_due = balance.balance_due
    order.payment_status = balance.payment_status
    return changed
