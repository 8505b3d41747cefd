"""
Line item and order total calculations.

Per line:
    subtotal        = quantity * unit_price
    tax_amount      = subtotal * tax_rate / 100
    discount_amount = subtotal * discount_rate / 100
    total           = subtotal + tax_amount - discount_amount

Per order:
    subtotal        = sum of line subtotals
    tax_amount      = sum of line tax amounts
    discount_amount = sum of line discounts + order-level discount
    total_amount    = subtotal + tax_amount + shipping_cost - discount_amount

Amounts a client submits alongside the rates are kept as submitted, but only
when they agree with the rate-derived value (see utils.money.TOLERANCE).
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Optional, Dict

from exceptions import ValidationError
from utils.money import to_money, money_equal, ZERO, CENT

HUNDRED = Decimal("100")
MIN_QUANTITY = CENT


@dataclass
class LineTotals:
    subtotal: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    total: Decimal


@dataclass
class OrderTotals:
    subtotal: Decimal
    tax_amount: Decimal
    shipping_cost: Decimal
    discount_amount: Decimal
    total_amount: Decimal


def _resolve(submitted, derived: Decimal, field: str, errors: List[Dict[str, str]]) -> Decimal:
    if submitted is None:
        return derived
    amount = to_money(submitted, field)
    if not money_equal(amount, derived):
        errors.append({
            "field": field,
            "message": f"Submitted value {amount} does not match the calculated value {derived}."
        })
    return amount


def calculate_line(
    quantity,
    unit_price,
    tax_rate=0,
    discount_rate=0,
    tax_amount=None,
    discount_amount=None,
    subtotal=None,
    total=None,
    field_prefix: str = "item",
) -> LineTotals:
    """Derive the amounts of one order line, checking any submitted amounts against them."""
    errors: List[Dict[str, str]] = []
    quantity = Decimal(str(quantity))

    derived_subtotal = to_money(quantity * to_money(unit_price, f"{field_prefix}.unit_price"))
    line_subtotal = _resolve(subtotal, derived_subtotal, f"{field_prefix}.subtotal", errors)

    derived_tax = to_money(line_subtotal * Decimal(str(tax_rate)) / HUNDRED)
    line_tax = _resolve(tax_amount, derived_tax, f"{field_prefix}.tax_amount", errors)

    derived_discount = to_money(line_subtotal * Decimal(str(discount_rate)) / HUNDRED)
    line_discount = _resolve(discount_amount, derived_discount, f"{field_prefix}.discount_amount", errors)

    derived_total = line_subtotal + line_tax - line_discount
    line_total = _resolve(total, derived_total, f"{field_prefix}.total", errors)
    if line_total < ZERO:
        errors.append({"field": f"{field_prefix}.total", "message": "Line total cannot be negative."})

    if errors:
        raise ValidationError("Line item amounts are inconsistent with their rates.", errors)
    return LineTotals(line_subtotal, line_tax, line_discount, line_total)


def aggregate_order(lines: Iterable, shipping_cost=ZERO, order_discount=ZERO) -> OrderTotals:
    """Sum line amounts into order totals.

    `lines` may be LineTotals or PurchaseOrderItem rows; both expose the same attributes.
    """
    subtotal = tax_amount = discount_amount = ZERO
    for line in lines:
        subtotal += to_money(line.subtotal)
        tax_amount += to_money(line.tax_amount)
        discount_amount += to_money(line.discount_amount)

    shipping_cost = to_money(shipping_cost)
    discount_amount += to_money(order_discount)
    total_amount = subtotal + tax_amount + shipping_cost - discount_amount
    return OrderTotals(subtotal, tax_amount, shipping_cost, discount_amount, total_amount)


def check_non_negative(value, field: str, errors: List[Dict[str, str]]):
    if value is None:
        return
    try:
        amount = Decimal(str(value))
    except ArithmeticError:
        errors.append({"field": field, "message": "Must be a number."})
        return
    if not amount.is_finite() or amount < 0:
        errors.append({"field": field, "message": "Must be zero or greater."})


def _has_two_places(value) -> bool:
    amount = Decimal(str(value))
    return amount.is_finite() and amount == amount.quantize(CENT)


def validate_items(items: Optional[list], shipping_cost=None, order_discount=None):
    """Check the submitted item set before anything is written.

    Raises ValidationError listing every offending field.
    """
    if not items:
        raise ValidationError.for_field("items", "Purchase order must contain at least one item.")

    errors: List[Dict[str, str]] = []
    check_non_negative(shipping_cost, "shipping_cost", errors)
    check_non_negative(order_discount, "discount_amount", errors)

    for index, item in enumerate(items):
        prefix = f"items.{index}"
        if item.inventory_item_id is None:
            errors.append({"field": f"{prefix}.inventory_item_id", "message": "Inventory item is required."})
        if item.quantity is None or not Decimal(str(item.quantity)).is_finite() or item.quantity < MIN_QUANTITY:
            errors.append({"field": f"{prefix}.quantity", "message": f"Quantity must be at least {MIN_QUANTITY}."})
        elif not _has_two_places(item.quantity):
            errors.append({"field": f"{prefix}.quantity", "message": "Quantity cannot have more than 2 decimal places."})
        for name in ("unit_price", "tax_rate", "discount_rate", "tax_amount", "discount_amount", "subtotal", "total"):
            check_non_negative(getattr(item, name, None), f"{prefix}.{name}", errors)
        # Rates are stored with 2 decimal places
        for name in ("tax_rate", "discount_rate"):
            rate = getattr(item, name, None)
            if rate is None or not Decimal(str(rate)).is_finite():
                continue
            if not _has_two_places(rate):
                errors.append({"field": f"{prefix}.{name}", "message": "Rate cannot have more than 2 decimal places."})
            elif name == "discount_rate" and rate > HUNDRED:
                errors.append({"field": f"{prefix}.discount_rate", "message": "Discount rate cannot exceed 100%."})

    if errors:
        raise ValidationError("Purchase order items are invalid.", errors)
