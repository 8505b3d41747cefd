from sqlalchemy import Column, Integer, String, Numeric, Date, ForeignKey, Enum
from sqlalchemy.orm import relationship
from database import Base
import enum
from models.audit_mixin import AuditMixin

class OrderPaymentStatus(enum.Enum):
    UNPAID = "unpaid"
    PARTIALLY_PAID = "partially_paid"
    PAID = "paid"

class PurchaseOrder(Base, AuditMixin):
    __tablename__ = "purchase_orders"

    id = Column(Integer, primary_key=True, index=True)
    po_number = Column(String, unique=True, index=True, nullable=False) # PO-YYYYMMDD-NNNN unless submitted
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False)
    order_date = Column(Date, nullable=False)
    payment_terms = Column(String, nullable=True)

    # Derived from items (see utils.line_items.aggregate_order)
    subtotal = Column(Numeric(12, 2), default=0, nullable=False)
    tax_amount = Column(Numeric(12, 2), default=0, nullable=False)
    shipping_cost = Column(Numeric(12, 2), default=0, nullable=False)
    discount_amount = Column(Numeric(12, 2), default=0, nullable=False) # item discounts + order_discount
    order_discount = Column(Numeric(12, 2), default=0, nullable=False) # order-level discount on top of item discounts
    total_amount = Column(Numeric(12, 2), default=0, nullable=False)

    # Derived from completed payments (see crud.payments.recalculate_order_payments)
    amount_paid = Column(Numeric(12, 2), default=0, server_default='0', nullable=False)
    balance_due = Column(Numeric(12, 2), default=0, server_default='0', nullable=False)
    payment_status = Column(Enum(OrderPaymentStatus), default=OrderPaymentStatus.UNPAID, nullable=False)

    # Relationships
    customer = relationship("Customer", back_populates="purchase_orders")
    items = relationship("PurchaseOrderItem", back_populates="purchase_order", cascade="all, delete-orphan", order_by="PurchaseOrderItem.id")
    # Relationship loads bypass the soft-delete listener, so deleted payments are excluded here
    payments = relationship(
        "Payment",
        primaryjoin="and_(PurchaseOrder.id == Payment.purchase_order_id, Payment.deleted_at.is_(None))",
        order_by="Payment.payment_date.desc()",
        viewonly=True,
    )
