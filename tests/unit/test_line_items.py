"""
Unit tests for line item and order total calculation.
"""
from decimal import Decimal

import pytest

from exceptions import ValidationError
from schemas.purchase_order_items import PurchaseOrderItemCreateRequest
from utils.line_items import calculate_line, aggregate_order, validate_items


def item(**kwargs):
    data = dict(inventory_item_id=1, quantity=Decimal("2"), unit_price=Decimal("10"))
    data.update(kwargs)
    return PurchaseOrderItemCreateRequest(**data)


@pytest.mark.unit
class TestCalculateLine:
    """Tests for calculate_line."""

    def test_derives_amounts_from_rates(self):
        line = calculate_line(quantity=Decimal("4"), unit_price=Decimal("25.00"), tax_rate=Decimal("16"), discount_rate=Decimal("5"))

        assert line.subtotal == Decimal("100.00")
        assert line.tax_amount == Decimal("16.00")
        assert line.discount_amount == Decimal("5.00")
        assert line.total == Decimal("111.00")

    def test_fractional_quantity_rounds_to_cents(self):
        line = calculate_line(quantity=Decimal("1.5"), unit_price=Decimal("3.33"), tax_rate=Decimal("7.5"))

        assert line.subtotal == Decimal("5.00")
        assert line.tax_amount == Decimal("0.38")
        assert line.total == Decimal("5.38")

    def test_submitted_amounts_kept_when_consistent(self):
        line = calculate_line(
            quantity=Decimal("3"), unit_price=Decimal("3.33"), tax_rate=Decimal("10"),
            tax_amount=Decimal("1.00"), subtotal=Decimal("9.99"), total=Decimal("10.99"),
        )

        # derived tax would be 1.00 (9.99 * 10%); submitted amount stands as given
        assert line.tax_amount == Decimal("1.00")
        assert line.total == Decimal("10.99")

    def test_submitted_amount_within_tolerance_is_not_recomputed(self):
        line = calculate_line(quantity=Decimal("1"), unit_price=Decimal("10.05"), tax_rate=Decimal("10"), tax_amount=Decimal("1.00"))

        # derived would be 1.01; the submitted 1.00 is kept
        assert line.tax_amount == Decimal("1.00")
        assert line.total == Decimal("11.05")

    def test_inconsistent_submitted_amounts_are_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            calculate_line(
                quantity=Decimal("1"), unit_price=Decimal("100"), tax_rate=Decimal("10"),
                tax_amount=Decimal("25"), discount_amount=Decimal("3"), field_prefix="items.0",
            )

        fields = {error["field"] for error in exc_info.value.errors}
        assert fields == {"items.0.tax_amount", "items.0.discount_amount"}

    def test_negative_line_total_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            calculate_line(quantity=Decimal("1"), unit_price=Decimal("100"), discount_rate=Decimal("150"), field_prefix="items.0")

        assert [error["field"] for error in exc_info.value.errors] == ["items.0.total"]

    def test_full_discount_gives_zero_total(self):
        line = calculate_line(quantity=Decimal("2"), unit_price=Decimal("10"), discount_rate=Decimal("100"))

        assert line.total == Decimal("0.00")


@pytest.mark.unit
class TestAggregateOrder:
    """Tests for aggregate_order."""

    def test_sums_lines_and_applies_shipping_and_order_discount(self):
        lines = [
            calculate_line(quantity=Decimal("2"), unit_price=Decimal("50"), tax_rate=Decimal("10"), discount_rate=Decimal("10")),
            calculate_line(quantity=Decimal("1"), unit_price=Decimal("20"), tax_rate=Decimal("0")),
        ]

        totals = aggregate_order(lines, shipping_cost=Decimal("15"), order_discount=Decimal("5"))

        assert totals.subtotal == Decimal("120.00")
        assert totals.tax_amount == Decimal("10.00")
        assert totals.discount_amount == Decimal("15.00")
        assert totals.shipping_cost == Decimal("15.00")
        assert totals.total_amount == Decimal("130.00")

    def test_total_equals_sum_of_line_totals_plus_shipping_minus_order_discount(self):
        lines = [
            calculate_line(quantity=Decimal("3"), unit_price=Decimal("19.99"), tax_rate=Decimal("16"), discount_rate=Decimal("2.5")),
            calculate_line(quantity=Decimal("7"), unit_price=Decimal("4.35"), tax_rate=Decimal("8"), discount_rate=Decimal("0")),
        ]

        totals = aggregate_order(lines, shipping_cost=Decimal("4.99"), order_discount=Decimal("1.00"))

        assert totals.total_amount == sum(line.total for line in lines) + Decimal("4.99") - Decimal("1.00")


@pytest.mark.unit
class TestValidateItems:
    """Tests for validate_items."""

    def test_empty_item_list_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_items([])
        assert exc_info.value.errors[0]["field"] == "items"

    def test_valid_items_pass(self):
        validate_items([item(), item(tax_rate=Decimal("16"))], shipping_cost=Decimal("0"))

    def test_collects_every_bad_field(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_items(
                [item(quantity=Decimal("0")), item(unit_price=Decimal("-1"), discount_rate=Decimal("-5"))],
                shipping_cost=Decimal("-2"),
            )

        fields = {error["field"] for error in exc_info.value.errors}
        assert fields == {"shipping_cost", "items.0.quantity", "items.1.unit_price", "items.1.discount_rate"}

    @pytest.mark.parametrize("quantity", ["0.004", "0.009"])
    def test_quantity_below_one_cent_rejected(self, quantity):
        with pytest.raises(ValidationError) as exc_info:
            validate_items([item(quantity=Decimal(quantity))])

        assert [error["field"] for error in exc_info.value.errors] == ["items.0.quantity"]

    def test_smallest_quantity_accepted(self):
        validate_items([item(quantity=Decimal("0.01"))])

    @pytest.mark.parametrize("name, value", [
        ("quantity", "1.255"),
        ("tax_rate", "7.125"),
        ("discount_rate", "2.505"),
    ])
    def test_more_than_two_decimal_places_rejected(self, name, value):
        with pytest.raises(ValidationError) as exc_info:
            validate_items([item(**{name: Decimal(value)})])

        assert [error["field"] for error in exc_info.value.errors] == [f"items.0.{name}"]

    def test_trailing_zeros_are_not_extra_places(self):
        validate_items([item(quantity=Decimal("2.500"), tax_rate=Decimal("16.000"))])

    def test_discount_rate_above_hundred_rejected_even_when_order_stays_positive(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_items([
                item(quantity=Decimal("1"), unit_price=Decimal("100"), discount_rate=Decimal("150")),
                item(quantity=Decimal("1"), unit_price=Decimal("100")),
            ])

        assert [error["field"] for error in exc_info.value.errors] == ["items.0.discount_rate"]

    def test_full_discount_allowed(self):
        validate_items([item(discount_rate=Decimal("100"))])
