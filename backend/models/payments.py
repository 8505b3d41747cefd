from sqlalchemy import Column, Integer, Numeric, Date, String, ForeignKey, Text, Enum
from sqlalchemy.orm import relationship
from database import Base
import enum
from models.audit_mixin import AuditMixin

class PaymentStatus(enum.Enum):
    COMPLETED = "completed"
    PENDING = "pending"
    FAILED = "failed"
    REFUNDED = "refunded"
    VOIDED = "voided"

# Only these statuses count toward an order's amount_paid
CONTRIBUTING_STATUSES = (PaymentStatus.COMPLETED,)

class PaymentMethod(enum.Enum):
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    CHECK = "check"
    CREDIT_CARD = "credit_card"
    MOBILE_MONEY = "mobile_money"
    OTHER = "other"

class Payment(Base, AuditMixin):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    payment_number = Column(String, unique=True, index=True, nullable=False) # PAY-YYYYMMDD-NNNN
    purchase_order_id = Column(Integer, ForeignKey("purchase_orders.id"), nullable=False)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False)
    payment_date = Column(Date, nullable=False)
    amount_paid = Column(Numeric(12, 2), nullable=False)
    payment_method = Column(Enum(PaymentMethod), default=PaymentMethod.CASH, nullable=False)
    status = Column(Enum(PaymentStatus), default=PaymentStatus.COMPLETED, nullable=False)
    # Order balance right after this payment was recorded or edited; informational only
    remaining_balance = Column(Numeric(12, 2), default=0, nullable=False)
    reference_number = Column(String, nullable=True) # Cheque number, transaction ID etc.
    transaction_id = Column(String, nullable=True)
    payment_provider = Column(String, nullable=True) # Bank name, mobile money provider etc.
    account_code = Column(String, nullable=True)
    tax_receipt_number = Column(String, nullable=True)
    notes = Column(Text, nullable=True)

    # Relationships
    purchase_order = relationship("PurchaseOrder")
    customer = relationship("Customer")
