from sqlalchemy import Column, Integer, String, Text, Numeric
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin

class InventoryItem(Base, TimestampMixin):
    __tablename__ = "inventory_items"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    packaging_type = Column(String, nullable=True) # e.g., "pcs", "carton", "kg"; default unit for PO lines
    quantity = Column(Numeric(10, 2), default=0, nullable=False)
    cost_price = Column(Numeric(12, 2), default=0, nullable=False)
    selling_price = Column(Numeric(12, 2), default=0, nullable=False) # default unit price for PO lines
    status = Column(String, nullable=True)

    # Relationships
    purchase_order_items = relationship("PurchaseOrderItem", back_populates="inventory_item")
