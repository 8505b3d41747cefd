import logging
from datetime import date
from typing import List, Optional, Dict

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from crud.number_sequence import next_number
from crud.payments import recalculate_order_payments
from database import transaction
from exceptions import ValidationError, NotFoundError, ConflictError
from models.customers import Customer
from models.inventory_items import InventoryItem
from models.payments import Payment
from models.purchase_order_items import PurchaseOrderItem
from models.purchase_orders import PurchaseOrder, OrderPaymentStatus
from schemas.purchase_order_items import PurchaseOrderItemCreateRequest
from schemas.purchase_orders import PurchaseOrderCreate, PurchaseOrderUpdate
from utils.clock import now
from utils.line_items import calculate_line, aggregate_order, validate_items, check_non_negative
from utils.money import to_money, ZERO
from utils.order_balance import apply_balance

logger = logging.getLogger("purchase_orders")

PO_NUMBER_PREFIX = "PO"


def get_purchase_order(db: Session, po_id: int) -> Optional[PurchaseOrder]:
    """A single purchase order with its items (and their inventory rows) and payments loaded."""
    return (
        db.query(PurchaseOrder)
        .filter(PurchaseOrder.id == po_id)
        .options(
            selectinload(PurchaseOrder.items).selectinload(PurchaseOrderItem.inventory_item),
            selectinload(PurchaseOrder.payments),
        )
        .first()
    )


def get_purchase_orders(
    db: Session,
    skip: int = 0,
    limit: int = 100,
    customer_id: Optional[int] = None,
    payment_status: Optional[OrderPaymentStatus] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> List[PurchaseOrder]:
    query = db.query(PurchaseOrder)

    if customer_id:
        query = query.filter(PurchaseOrder.customer_id == customer_id)
    if payment_status:
        query = query.filter(PurchaseOrder.payment_status == payment_status)
    if start_date:
        query = query.filter(PurchaseOrder.order_date >= start_date)
    if end_date:
        query = query.filter(PurchaseOrder.order_date <= end_date)

    return query.order_by(PurchaseOrder.order_date.desc(), PurchaseOrder.id.desc()).options(
        selectinload(PurchaseOrder.items),
        selectinload(PurchaseOrder.payments)
    ).offset(skip).limit(limit).all()


def get_orders_with_balance_due(db: Session) -> List[PurchaseOrder]:
    """Orders still awaiting payment, the candidates offered when recording a payment."""
    return (
        db.query(PurchaseOrder)
        .filter(
            PurchaseOrder.payment_status.in_([OrderPaymentStatus.UNPAID, OrderPaymentStatus.PARTIALLY_PAID]),
            PurchaseOrder.balance_due > 0,
        )
        .order_by(PurchaseOrder.order_date.desc(), PurchaseOrder.id.desc())
        .all()
    )


def _get_customer(db: Session, customer_id: int) -> Customer:
    db_customer = db.query(Customer).filter(Customer.id == customer_id).first()
    if db_customer is None:
        raise NotFoundError(f"Customer {customer_id} not found.")
    return db_customer


def _ensure_po_number_free(db: Session, po_number: str, po_id: Optional[int] = None):
    query = db.query(PurchaseOrder.id).filter(PurchaseOrder.po_number == po_number)
    if po_id is not None:
        query = query.filter(PurchaseOrder.id != po_id)
    if query.first() is not None:
        raise ConflictError(f"PO number '{po_number}' is already in use.")


def _fill_item(db: Session, db_item: PurchaseOrderItem, item: PurchaseOrderItemCreateRequest, index: int) -> PurchaseOrderItem:
    """Copy a submitted line onto an item row, taking unit and price defaults from inventory."""
    inventory_item = db.query(InventoryItem).filter(InventoryItem.id == item.inventory_item_id).first()
    if inventory_item is None:
        raise NotFoundError(f"Inventory Item with ID {item.inventory_item_id} not found.")

    unit_price = item.unit_price if item.unit_price is not None else inventory_item.selling_price
    line = calculate_line(
        quantity=item.quantity,
        unit_price=unit_price,
        tax_rate=item.tax_rate,
        discount_rate=item.discount_rate,
        tax_amount=item.tax_amount,
        discount_amount=item.discount_amount,
        subtotal=item.subtotal,
        total=item.total,
        field_prefix=f"items.{index}",
    )

    db_item.inventory_item_id = item.inventory_item_id
    db_item.quantity = item.quantity
    db_item.unit = item.unit or inventory_item.packaging_type
    db_item.unit_price = to_money(unit_price)
    db_item.tax_rate = item.tax_rate
    db_item.discount_rate = item.discount_rate
    db_item.subtotal = line.subtotal
    db_item.tax_amount = line.tax_amount
    db_item.discount_amount = line.discount_amount
    db_item.total = line.total
    return db_item


def _apply_totals(db_po: PurchaseOrder):
    totals = aggregate_order(db_po.items, db_po.shipping_cost, db_po.order_discount)
    if totals.total_amount < ZERO:
        raise ValidationError.for_field("discount_amount", "Discounts cannot exceed the order value.")
    db_po.subtotal = totals.subtotal
    db_po.tax_amount = totals.tax_amount
    db_po.shipping_cost = totals.shipping_cost
    db_po.discount_amount = totals.discount_amount
    db_po.total_amount = totals.total_amount


def create_purchase_order(db: Session, po: PurchaseOrderCreate, user_id: str) -> PurchaseOrder:
    """Create a new purchase order with its items. No payments exist yet, so the full total is due."""
    validate_items(po.items, po.shipping_cost, po.discount_amount)

    with transaction(db, "create purchase order"):
        _get_customer(db, po.customer_id)
        if po.po_number:
            _ensure_po_number_free(db, po.po_number)

        db_items = [
            _fill_item(db, PurchaseOrderItem(created_by=user_id), item, index)
            for index, item in enumerate(po.items)
        ]

        db_po = PurchaseOrder(
            po_number=po.po_number or next_number(db, PO_NUMBER_PREFIX),
            customer_id=po.customer_id,
            order_date=po.order_date,
            payment_terms=po.payment_terms,
            shipping_cost=to_money(po.shipping_cost),
            order_discount=to_money(po.discount_amount),
            amount_paid=ZERO,
            created_by=user_id,
        )
        db_po.items = db_items
        _apply_totals(db_po)
        apply_balance(db_po)
        db.add(db_po)
        db.flush()

    logger.info(f"Purchase Order {db_po.po_number} (ID: {db_po.id}) created for Customer ID {db_po.customer_id} with {len(po.items)} items by user {user_id}")
    return db_po


def _sync_items(db: Session, db_po: PurchaseOrder, items: List[PurchaseOrderItemCreateRequest], user_id: str):
    """Make the order's item set match the submission.

    Lines carrying an id are updated in place, lines without one are added and
    existing lines left out of the submission are deleted.
    """
    existing: Dict[int, PurchaseOrderItem] = {item.id: item for item in db_po.items}
    seen = set()
    errors = []
    for index, item in enumerate(items):
        if item.id is None:
            continue
        if item.id not in existing:
            errors.append({"field": f"items.{index}.id", "message": f"Item {item.id} does not belong to this purchase order."})
        elif item.id in seen:
            errors.append({"field": f"items.{index}.id", "message": f"Item {item.id} is listed more than once."})
        seen.add(item.id)
    if errors:
        raise ValidationError("Purchase order items are invalid.", errors)

    kept = []
    for index, item in enumerate(items):
        if item.id is None:
            db_item = PurchaseOrderItem(created_by=user_id)
        else:
            db_item = existing[item.id]
            db_item.updated_by = user_id
        kept.append(_fill_item(db, db_item, item, index))

    removed = [item_id for item_id in existing if item_id not in seen]
    # delete-orphan removes rows dropped from the collection
    db_po.items = kept
    if removed:
        logger.info(f"PO {db_po.id}: removed items {removed}")


def update_purchase_order(db: Session, po_id: int, po_update: PurchaseOrderUpdate, user_id: str) -> PurchaseOrder:
    """Update a purchase order's header and, when given, its item set. Payments are untouched."""
    po_data = po_update.model_dump(exclude_unset=True, exclude={"items"})
    for field in ("po_number", "customer_id", "order_date", "shipping_cost", "discount_amount"):
        if field in po_data and po_data[field] is None:
            raise ValidationError.for_field(field, f"{field} cannot be empty.")
    errors = []
    check_non_negative(po_data.get("shipping_cost"), "shipping_cost", errors)
    check_non_negative(po_data.get("discount_amount"), "discount_amount", errors)
    if errors:
        raise ValidationError("Purchase order is invalid.", errors)
    if po_update.items is not None:
        validate_items(po_update.items)

    with transaction(db, "update purchase order"):
        db_po = db.query(PurchaseOrder).filter(PurchaseOrder.id == po_id).with_for_update().first()
        if db_po is None:
            raise NotFoundError(f"Purchase Order {po_id} not found.")

        if "customer_id" in po_data:
            _get_customer(db, po_data["customer_id"])
        if "po_number" in po_data:
            _ensure_po_number_free(db, po_data["po_number"], po_id)
        if "shipping_cost" in po_data:
            po_data["shipping_cost"] = to_money(po_data["shipping_cost"])
        if "discount_amount" in po_data:
            po_data["order_discount"] = to_money(po_data.pop("discount_amount"))

        old_customer_id = db_po.customer_id
        for key, value in po_data.items():
            setattr(db_po, key, value)

        if db_po.customer_id != old_customer_id:
            # Payments carry the order's customer
            moved = (
                db.query(Payment)
                .filter(Payment.purchase_order_id == po_id, Payment.deleted_at.is_(None))
                .update({Payment.customer_id: db_po.customer_id}, synchronize_session="fetch")
            )
            logger.info(f"PO {po_id}: customer changed from {old_customer_id} to {db_po.customer_id}; {moved} payment(s) re-assigned")

        if po_update.items is not None:
            _sync_items(db, db_po, po_update.items, user_id)

        _apply_totals(db_po)
        # Re-derive the balance against the new total; who has paid what does not change
        recalculate_order_payments(db, db_po, user_id)

    logger.info(f"Purchase Order (ID: {po_id}) updated by user {user_id}; total {db_po.total_amount}, balance due {db_po.balance_due}")
    return db_po


def delete_purchase_order(db: Session, po_id: int, user_id: str) -> None:
    """Soft-delete a purchase order and delete its items.

    Orders that still have payments cannot be deleted; remove the payments first.
    """
    with transaction(db, "delete purchase order"):
        db_po = db.query(PurchaseOrder).filter(PurchaseOrder.id == po_id).with_for_update().first()
        if db_po is None:
            raise NotFoundError(f"Purchase Order {po_id} not found.")

        payment_count = (
            db.query(func.count(Payment.id))
            .filter(Payment.purchase_order_id == po_id, Payment.deleted_at.is_(None))
            .scalar()
        )
        if payment_count:
            raise ConflictError(
                f"Purchase Order {db_po.po_number} has {payment_count} payment(s). Delete the payments before deleting the order."
            )

        db_po.items = []
        db_po.deleted_at = now()
        db_po.deleted_by = user_id

    logger.info(f"Purchase Order (ID: {po_id}) soft deleted by user {user_id}")
