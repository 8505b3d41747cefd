"""
Pytest configuration and shared fixtures for the back office test suite.
"""
import os
import tempfile
from datetime import date
from decimal import Decimal
from typing import Generator

# Must be set before database.py / main.py are imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="backoffice_logs_"))

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

import models  # noqa: F401  registers every table
from database import Base
from models.customers import Customer
from models.inventory_items import InventoryItem
from models.payments import Payment, PaymentStatus
from models.purchase_orders import PurchaseOrder, OrderPaymentStatus
from schemas.payments import PaymentCreate
from schemas.purchase_orders import PurchaseOrderCreate
from schemas.purchase_order_items import PurchaseOrderItemCreateRequest

USER = "clerk@example.com"


@pytest.fixture
def engine():
    """A private in-memory database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine) -> Generator[Session, None, None]:
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def customer(db) -> Customer:
    db_customer = Customer(first_name="Amina", last_name="Okafor", company_name="Okafor Retail")
    db.add(db_customer)
    db.commit()
    return db_customer


@pytest.fixture
def other_customer(db) -> Customer:
    db_customer = Customer(first_name="Tomas", last_name="Berg", company_name="Berg Foods")
    db.add(db_customer)
    db.commit()
    return db_customer


@pytest.fixture
def inventory_item(db) -> InventoryItem:
    item = InventoryItem(name="Mineral Water 500ml", packaging_type="carton", selling_price=Decimal("12.50"), cost_price=Decimal("9.00"))
    db.add(item)
    db.commit()
    return item


@pytest.fixture
def make_order(db, customer, inventory_item):
    """Create an order whose total equals `total` (one line, no tax, no discount)."""
    from crud.purchase_orders import create_purchase_order

    def _make(total="100.00", **overrides) -> PurchaseOrder:
        data = dict(
            customer_id=customer.id,
            order_date=date(2025, 3, 15),
            payment_terms="Net 30",
            items=[PurchaseOrderItemCreateRequest(
                inventory_item_id=inventory_item.id,
                quantity=Decimal("1"),
                unit_price=Decimal(total),
            )],
        )
        data.update(overrides)
        return create_purchase_order(db, PurchaseOrderCreate(**data), USER)

    return _make


@pytest.fixture
def pay(db):
    """Record a payment against an order."""
    from crud.payments import create_payment

    def _pay(order, amount, status=PaymentStatus.COMPLETED, **extra) -> Payment:
        payment = PaymentCreate(
            purchase_order_id=order.id,
            payment_date=date(2025, 3, 20),
            amount_paid=Decimal(amount),
            status=status,
            **extra,
        )
        return create_payment(db, payment, USER)

    return _pay


@pytest.fixture
def assert_reconciled(db):
    """Check the stored figures of an order against its payment rows."""

    def _check(order_id: int) -> PurchaseOrder:
        db.expire_all()
        db_po = db.query(PurchaseOrder).filter(PurchaseOrder.id == order_id).first()
        payments = db.query(Payment).filter(Payment.purchase_order_id == order_id).all()
        expected_paid = sum(
            (p.amount_paid for p in payments if p.status == PaymentStatus.COMPLETED and p.deleted_at is None),
            Decimal("0"),
        )
        assert db_po.amount_paid == expected_paid
        assert db_po.balance_due == max(Decimal("0"), db_po.total_amount - db_po.amount_paid)
        if db_po.balance_due <= 0:
            assert db_po.payment_status == OrderPaymentStatus.PAID
        elif db_po.amount_paid > 0:
            assert db_po.payment_status == OrderPaymentStatus.PARTIALLY_PAID
        else:
            assert db_po.payment_status == OrderPaymentStatus.UNPAID
        return db_po

    return _check


# Configure pytest markers
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "api: API tests")
