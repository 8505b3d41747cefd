from models.customers import Customer
from models.inventory_items import InventoryItem
from models.purchase_orders import PurchaseOrder
from models.purchase_order_items import PurchaseOrderItem
from models.payments import Payment
from models.number_sequences import NumberSequence

__all__ = ['Customer', 'InventoryItem', 'NumberSequence', 'Payment', 'PurchaseOrder', 'PurchaseOrderItem',]
