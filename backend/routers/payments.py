from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List

from database import get_db
from crud import payments as crud
from schemas.payments import Payment, PaymentCreate, PaymentUpdate
from utils.identity import get_user_id

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("/", response_model=Payment, status_code=status.HTTP_201_CREATED)
def create_payment(
    payment: PaymentCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id)
):
    """Record a new payment for a purchase order."""
    return crud.create_payment(db, payment, user_id)


@router.get("/recent", response_model=List[Payment])
def get_recent_payments(limit: int = 10, db: Session = Depends(get_db)):
    """Most recent payments across all orders."""
    return crud.get_recent_payments(db, limit=limit)


@router.get("/by-po/{po_id}", response_model=List[Payment])
def get_payments_for_po(po_id: int, db: Session = Depends(get_db)):
    """Retrieve all payments for a specific purchase order."""
    return crud.get_payments_for_order(db, po_id)


@router.get("/{payment_id}", response_model=Payment)
def read_payment(payment_id: int, db: Session = Depends(get_db)):
    """Retrieve a single payment by ID."""
    db_payment = crud.get_payment(db, payment_id)
    if db_payment is None:
        raise HTTPException(status_code=404, detail="Payment not found")
    return db_payment


@router.patch("/{payment_id}", response_model=Payment)
def update_payment(
    payment_id: int,
    payment_update: PaymentUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id)
):
    """Update an existing payment, including moving it to another purchase order."""
    return crud.update_payment(db, payment_id, payment_update, user_id)


@router.delete("/{payment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_payment(
    payment_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id)
):
    """Delete a payment."""
    crud.delete_payment(db, payment_id, user_id)
