#!/usr/bin/env python3
"""
Script to rebuild amount_paid, balance_due and payment_status of every
purchase order from its completed payments.
"""

from sqlalchemy.orm import Session
from database import SessionLocal
from crud.payments import recalculate_all_orders
from exceptions import ServiceError

def main() -> int:
    db: Session = SessionLocal()
    try:
        changed = recalculate_all_orders(db)
        print(f"Recalculated purchase order balances; {changed} order(s) corrected.")
        return 0
    except ServiceError as e:
        print(f"Error: {e.message}")
        return 1
    finally:
        db.close()

if __name__ == "__main__":
    raise SystemExit(main())
