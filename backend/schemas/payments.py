from pydantic import BaseModel
from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from models.payments import PaymentStatus, PaymentMethod

class PaymentBase(BaseModel):
    purchase_order_id: int
    payment_date: date
    amount_paid: Decimal
    payment_method: PaymentMethod = PaymentMethod.CASH
    status: PaymentStatus = PaymentStatus.COMPLETED
    reference_number: Optional[str] = None
    transaction_id: Optional[str] = None
    payment_provider: Optional[str] = None
    account_code: Optional[str] = None
    tax_receipt_number: Optional[str] = None
    notes: Optional[str] = None

class PaymentCreate(PaymentBase):
    pass

class PaymentUpdate(BaseModel):
    purchase_order_id: Optional[int] = None
    payment_date: Optional[date] = None
    amount_paid: Optional[Decimal] = None
    payment_method: Optional[PaymentMethod] = None
    status: Optional[PaymentStatus] = None
    reference_number: Optional[str] = None
    transaction_id: Optional[str] = None
    payment_provider: Optional[str] = None
    account_code: Optional[str] = None
    tax_receipt_number: Optional[str] = None
    notes: Optional[str] = None

class SettleOrderRequest(BaseModel):
    payment_date: date
    payment_method: PaymentMethod = PaymentMethod.CASH
    reference_number: Optional[str] = None
    notes: Optional[str] = None

class Payment(PaymentBase):
    id: int
    payment_number: str
    customer_id: int
    remaining_balance: Decimal
    created_at: datetime
    updated_at: Optional[datetime] = None
    created_by: Optional[str] = None
    updated_by: Optional[str] = None

    class Config:
        from_attributes = True
