import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from crud.number_sequence import next_number
from database import transaction
from exceptions import ValidationError, NotFoundError
from models.payments import Payment, PaymentStatus, CONTRIBUTING_STATUSES
from models.purchase_orders import PurchaseOrder
from schemas.payments import PaymentCreate, PaymentUpdate, SettleOrderRequest
from utils.clock import now
from utils.money import to_money, ZERO
from utils.order_balance import apply_balance

logger = logging.getLogger("payments")

PAYMENT_NUMBER_PREFIX = "PAY"

# Columns a payment edit may not blank out
REQUIRED_FIELDS = ("purchase_order_id", "payment_date", "amount_paid", "payment_method", "status")


def get_payment(db: Session, payment_id: int) -> Optional[Payment]:
    return db.query(Payment).filter(Payment.id == payment_id).first()


def get_payments_for_order(db: Session, order_id: int) -> List[Payment]:
    """Payment history of one order, newest first."""
    if db.query(PurchaseOrder).filter(PurchaseOrder.id == order_id).first() is None:
        raise NotFoundError(f"Purchase Order {order_id} not found.")
    return (
        db.query(Payment)
        .filter(Payment.purchase_order_id == order_id)
        .order_by(Payment.payment_date.desc(), Payment.id.desc())
        .all()
    )


def get_recent_payments(db: Session, limit: int = 10) -> List[Payment]:
    return db.query(Payment).order_by(Payment.payment_date.desc(), Payment.id.desc()).limit(limit).all()


def _get_order_for_update(db: Session, order_id: int) -> PurchaseOrder:
    db_po = db.query(PurchaseOrder).filter(PurchaseOrder.id == order_id).with_for_update().first()
    if db_po is None:
        raise NotFoundError(f"Purchase Order {order_id} not found.")
    return db_po


def completed_payments_total(db: Session, order_id: int) -> Decimal:
    """Sum of the non-deleted payments on an order whose status counts toward amount_paid."""
    total = (
        db.query(func.coalesce(func.sum(Payment.amount_paid), 0))
        .filter(
            Payment.purchase_order_id == order_id,
            Payment.status.in_(CONTRIBUTING_STATUSES),
            Payment.deleted_at.is_(None),
        )
        .scalar()
    )
    return to_money(total)


def recalculate_order_payments(db: Session, db_po: PurchaseOrder, user_id: Optional[str] = None) -> PurchaseOrder:
    """Rebuild amount_paid from the order's payments and re-derive its balance.

    amount_paid is summed from the payment rows rather than incremented, so it
    cannot drift from them whatever sequence of edits led here. Pending writes
    are flushed first so the sum sees them.
    """
    db.flush()
    db_po.amount_paid = completed_payments_total(db, db_po.id)
    old_status = db_po.payment_status
    if apply_balance(db_po):
        logger.info(
            f"PO {db_po.id} payment status changed from "
            f"'{old_status.value if old_status else None}' to '{db_po.payment_status.value}'."
        )
    if user_id is not None:
        db_po.updated_at = now()
        db_po.updated_by = user_id
    return db_po


def _check_amount(amount) -> Decimal:
    if amount is None or to_money(amount, "amount_paid") <= ZERO:
        raise ValidationError.for_field("amount_paid", "Payment amount must be greater than zero.")
    return to_money(amount)


def _record_payment(db: Session, payment: PaymentCreate, user_id: str) -> Payment:
    amount = _check_amount(payment.amount_paid)
    db_po = _get_order_for_update(db, payment.purchase_order_id)

    db_payment = Payment(
        **payment.model_dump(exclude={"amount_paid"}),
        amount_paid=amount,
        payment_number=next_number(db, PAYMENT_NUMBER_PREFIX),
        customer_id=db_po.customer_id,
        created_by=user_id,
    )
    db.add(db_payment)

    recalculate_order_payments(db, db_po, user_id)
    db_payment.remaining_balance = db_po.balance_due
    db.flush()
    return db_payment


def create_payment(db: Session, payment: PaymentCreate, user_id: str) -> Payment:
    """Record a payment against a purchase order and reconcile the order."""
    with transaction(db, "record payment"):
        db_payment = _record_payment(db, payment, user_id)

    logger.info(
        f"Payment {db_payment.payment_number} of {db_payment.amount_paid} ({db_payment.status.value}) "
        f"recorded for Purchase Order ID {db_payment.purchase_order_id} by user {user_id}"
    )
    return db_payment


def update_payment(db: Session, payment_id: int, payment_update: PaymentUpdate, user_id: str) -> Payment:
    """Edit a payment in place, reconciling its old and new order when it moved."""
    payment_data = payment_update.model_dump(exclude_unset=True)
    for field in REQUIRED_FIELDS:
        if field in payment_data and payment_data[field] is None:
            raise ValidationError.for_field(field, f"{field} cannot be empty.")
    if "amount_paid" in payment_data:
        payment_data["amount_paid"] = _check_amount(payment_data["amount_paid"])

    with transaction(db, "update payment"):
        db_payment = get_payment(db, payment_id)
        if db_payment is None:
            raise NotFoundError(f"Payment {payment_id} not found.")

        old_order_id = db_payment.purchase_order_id
        new_order_id = payment_data.get("purchase_order_id", old_order_id)

        # Lock both orders in id order so two crossing moves cannot deadlock
        orders = {order_id: _get_order_for_update(db, order_id) for order_id in sorted({old_order_id, new_order_id})}

        for key, value in payment_data.items():
            setattr(db_payment, key, value)
        db_payment.customer_id = orders[new_order_id].customer_id
        db_payment.updated_at = now()
        db_payment.updated_by = user_id

        for db_po in orders.values():
            recalculate_order_payments(db, db_po, user_id)
        db_payment.remaining_balance = orders[new_order_id].balance_due

    if old_order_id != new_order_id:
        logger.info(f"Payment ID {payment_id} moved from Purchase Order ID {old_order_id} to {new_order_id} by user {user_id}")
    logger.info(f"Payment ID {payment_id} updated for Purchase Order ID {new_order_id} by user {user_id}")
    return db_payment


def delete_payment(db: Session, payment_id: int, user_id: str) -> None:
    """Soft-delete a payment and take it out of its order's amount_paid."""
    with transaction(db, "delete payment"):
        db_payment = get_payment(db, payment_id)
        if db_payment is None:
            raise NotFoundError(f"Payment {payment_id} not found.")

        db_po = _get_order_for_update(db, db_payment.purchase_order_id)
        db_payment.deleted_at = now()
        db_payment.deleted_by = user_id
        recalculate_order_payments(db, db_po, user_id)

    logger.info(f"Payment ID {payment_id} deleted for Purchase Order ID {db_po.id} by user {user_id}")


def settle_order(db: Session, order_id: int, settle: SettleOrderRequest, user_id: str) -> Payment:
    """Mark an order as paid by recording a completed payment for its balance due."""
    with transaction(db, "settle purchase order"):
        db_po = _get_order_for_update(db, order_id)
        # Work from the payments themselves, not the cached balance
        recalculate_order_payments(db, db_po)
        if db_po.balance_due <= ZERO:
            raise ValidationError.for_field("purchase_order_id", f"Purchase Order {order_id} has no balance due.")

        payment = PaymentCreate(
            purchase_order_id=order_id,
            amount_paid=db_po.balance_due,
            status=PaymentStatus.COMPLETED,
            **settle.model_dump(),
        )
        db_payment = _record_payment(db, payment, user_id)

    logger.info(f"Purchase Order ID {order_id} settled with payment {db_payment.payment_number} by user {user_id}")
    return db_payment


def recalculate_all_orders(db: Session) -> int:
    """Rebuild the cached payment totals of every order. Returns the number of orders whose figures changed."""
    changed = 0
    with transaction(db, "recalculate order balances"):
        for db_po in db.query(PurchaseOrder).order_by(PurchaseOrder.id).all():
            before = (to_money(db_po.amount_paid), to_money(db_po.balance_due), db_po.payment_status)
            recalculate_order_payments(db, db_po)
            if before != (db_po.amount_paid, db_po.balance_due, db_po.payment_status):
                changed += 1
                logger.info(f"PO {db_po.id}: amount_paid corrected from {before[0]} to {db_po.amount_paid}")
    return changed
