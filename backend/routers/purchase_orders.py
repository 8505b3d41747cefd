# backend/routers/purchase_orders.py

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date

from database import get_db
from crud import purchase_orders as crud
from crud.payments import settle_order
from models.purchase_orders import OrderPaymentStatus
from schemas.purchase_orders import (
    PurchaseOrder as PurchaseOrderSchema,
    PurchaseOrderCreate,
    PurchaseOrderUpdate,
)
from schemas.payments import Payment as PaymentSchema, SettleOrderRequest
from utils.identity import get_user_id

router = APIRouter(prefix="/purchase-orders", tags=["Purchase Orders"])


@router.post("/", response_model=PurchaseOrderSchema, status_code=status.HTTP_201_CREATED)
def create_purchase_order(
    po: PurchaseOrderCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id)
):
    """Create a new purchase order with associated items."""
    db_po = crud.create_purchase_order(db, po, user_id)
    return crud.get_purchase_order(db, db_po.id)


@router.get("/", response_model=List[PurchaseOrderSchema])
def read_purchase_orders(
    skip: int = 0,
    limit: int = 100,
    customer_id: Optional[int] = None,
    payment_status: Optional[OrderPaymentStatus] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db)
):
    """Retrieve a list of purchase orders with various filters."""
    return crud.get_purchase_orders(
        db,
        skip=skip,
        limit=limit,
        customer_id=customer_id,
        payment_status=payment_status,
        start_date=start_date,
        end_date=end_date,
    )


@router.get("/balance-due", response_model=List[PurchaseOrderSchema])
def read_orders_with_balance_due(db: Session = Depends(get_db)):
    """Unpaid and partially paid orders that can still take a payment."""
    return crud.get_orders_with_balance_due(db)


@router.get("/{po_id}", response_model=PurchaseOrderSchema)
def read_purchase_order(po_id: int, db: Session = Depends(get_db)):
    """Retrieve a single purchase order by ID, with items and payments."""
    db_po = crud.get_purchase_order(db, po_id)
    if db_po is None:
        raise HTTPException(status_code=404, detail="Purchase Order not found")
    return db_po


@router.patch("/{po_id}", response_model=PurchaseOrderSchema)
def update_purchase_order(
    po_id: int,
    po_update: PurchaseOrderUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id)
):
    """Update an existing purchase order (partial update). A submitted item list replaces the order's items."""
    crud.update_purchase_order(db, po_id, po_update, user_id)
    return crud.get_purchase_order(db, po_id)


@router.delete("/{po_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_purchase_order(
    po_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id)
):
    """Delete a purchase order. Orders with payments must have their payments removed first."""
    crud.delete_purchase_order(db, po_id, user_id)


@router.post("/{po_id}/settle", response_model=PaymentSchema, status_code=status.HTTP_201_CREATED)
def settle_purchase_order(
    po_id: int,
    request_body: SettleOrderRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id)
):
    """Mark a purchase order as paid by recording a payment for its remaining balance."""
    return settle_order(db, po_id, request_body, user_id)
