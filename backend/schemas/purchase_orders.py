from pydantic import BaseModel
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal
from models.purchase_orders import OrderPaymentStatus
from models.payments import PaymentStatus, PaymentMethod
from schemas.purchase_order_items import PurchaseOrderItem, PurchaseOrderItemCreateRequest

class Payment(BaseModel): # Compact payment row for the order detail view
    id: int
    payment_number: str
    payment_date: date
    amount_paid: Decimal
    payment_method: PaymentMethod
    status: PaymentStatus
    reference_number: Optional[str] = None

    class Config:
        from_attributes = True

class PurchaseOrderBase(BaseModel):
    customer_id: int
    order_date: date
    payment_terms: Optional[str] = None

class PurchaseOrderCreate(PurchaseOrderBase):
    po_number: Optional[str] = None # generated when omitted
    shipping_cost: Decimal = Decimal("0")
    discount_amount: Decimal = Decimal("0") # order-level discount, added to the item discounts
    items: List[PurchaseOrderItemCreateRequest]

class PurchaseOrderUpdate(BaseModel):
    po_number: Optional[str] = None
    customer_id: Optional[int] = None
    order_date: Optional[date] = None
    payment_terms: Optional[str] = None
    shipping_cost: Optional[Decimal] = None
    discount_amount: Optional[Decimal] = None
    # When present, the full new item set (lines with an id are updated in place)
    items: Optional[List[PurchaseOrderItemCreateRequest]] = None
    # amount_paid, balance_due and payment_status are system-calculated, not updated directly

class PurchaseOrder(PurchaseOrderBase):
    id: int
    po_number: str
    subtotal: Decimal
    tax_amount: Decimal
    shipping_cost: Decimal
    discount_amount: Decimal
    order_discount: Decimal
    total_amount: Decimal
    amount_paid: Decimal
    balance_due: Decimal
    payment_status: OrderPaymentStatus
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    # Include related items and payments for detailed view
    items: List[PurchaseOrderItem] = []
    payments: List[Payment] = []

    class Config:
        from_attributes = True
