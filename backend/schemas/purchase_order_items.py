from pydantic import BaseModel
from typing import Optional
from decimal import Decimal

class PurchaseOrderItemBase(BaseModel):
    inventory_item_id: int
    quantity: Decimal
    unit: Optional[str] = None # defaults to the inventory item's packaging type
    unit_price: Optional[Decimal] = None # defaults to the inventory item's selling price
    tax_rate: Decimal = Decimal("0")
    discount_rate: Decimal = Decimal("0")

class PurchaseOrderItemCreateRequest(PurchaseOrderItemBase):
    # Used when creating/editing a PO. `id` identifies an existing line on edit;
    # amounts are optional and, when given, must agree with the rates.
    id: Optional[int] = None
    tax_amount: Optional[Decimal] = None
    discount_amount: Optional[Decimal] = None
    subtotal: Optional[Decimal] = None
    total: Optional[Decimal] = None

class PurchaseOrderItem(PurchaseOrderItemBase):
    id: int
    purchase_order_id: int
    unit_price: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    subtotal: Decimal
    total: Decimal

    class Config:
        from_attributes = True
