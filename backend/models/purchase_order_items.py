from sqlalchemy import Column, Integer, Numeric, ForeignKey, String
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin

class PurchaseOrderItem(Base, TimestampMixin):
    __tablename__ = "purchase_order_items"

    id = Column(Integer, primary_key=True, index=True)
    purchase_order_id = Column(Integer, ForeignKey("purchase_orders.id", ondelete="CASCADE"), nullable=False)
    inventory_item_id = Column(Integer, ForeignKey("inventory_items.id"), nullable=False)
    quantity = Column(Numeric(10, 2), nullable=False)
    unit = Column(String, nullable=True) # e.g., pcs, kg, liters
    unit_price = Column(Numeric(12, 2), nullable=False)
    tax_rate = Column(Numeric(5, 2), default=0, nullable=False) # Percentage
    tax_amount = Column(Numeric(12, 2), default=0, nullable=False)
    discount_rate = Column(Numeric(5, 2), default=0, nullable=False) # Percentage
    discount_amount = Column(Numeric(12, 2), default=0, nullable=False)
    subtotal = Column(Numeric(12, 2), nullable=False) # quantity * unit_price
    total = Column(Numeric(12, 2), nullable=False) # subtotal + tax_amount - discount_amount

    # Relationships
    purchase_order = relationship("PurchaseOrder", back_populates="items")
    inventory_item = relationship("InventoryItem", back_populates="purchase_order_items")
