"""
Shared fixtures: in-memory SQLite schema per test, API client, factories
"""
import os

# Must be set before mfgflow.core reads its settings
os.environ["DATABASE_URI"] = "sqlite://"
os.environ.setdefault("COMPLETION_MODE", "legacy")
os.environ.setdefault("MO_NUMBER_STRATEGY", "sequence")

from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from mfgflow.core import Base, engine, SessionLocal, settings
from mfgflow.core.security import get_password_hash, token_for_user
from mfgflow.models import (
    User, UserRole, Product, BillOfMaterial, BOMComponent, ManufacturingOrder,
    WorkCenter, WorkOrder, ComponentAvailability
)
from mfgflow.schemas.stock import StockTransactionCreate
from mfgflow.services import StockService, SequenceService
from main import app


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def legacy_mode(monkeypatch):
    monkeypatch.setattr(settings, "COMPLETION_MODE", "legacy")


@pytest.fixture
def atomic_mode(monkeypatch):
    monkeypatch.setattr(settings, "COMPLETION_MODE", "atomic")


# ===================== USERS & CLIENT =====================

@pytest.fixture
def make_user(db):
    def _make(role=UserRole.BUSINESS_OWNER.value, email=None, password="Secret123", is_active=True):
        user = User(
            name=f"{role.title()} User",
            email=email or f"{role.lower()}@example.com",
            password_hash=get_password_hash(password),
            role=role,
            is_active=is_active
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def owner(make_user):
    return make_user(UserRole.BUSINESS_OWNER.value)


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def auth_headers():
    def _headers(user):
        return {"Authorization": f"Bearer {token_for_user(user)}"}
    return _headers


@pytest.fixture
def owner_headers(owner, auth_headers):
    return auth_headers(owner)


# ===================== MASTER DATA FACTORIES =====================

@pytest.fixture
def make_product(db):
    def _make(name, type="RAW_MATERIAL", unit_cost=0, stock=0):
        product = Product(
            name=name,
            type=type,
            unit_of_measure="PCS",
            unit_cost=Decimal(str(unit_cost)),
            current_stock=0
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        if stock:
            StockService.create_stock_transaction(db, StockTransactionCreate(
                product_id=product.id,
                transaction_type="IN",
                quantity=stock,
                unit_cost=Decimal(str(unit_cost)),
                reference="Opening stock"
            ))
            db.refresh(product)
        return product
    return _make


@pytest.fixture
def make_bom(db):
    def _make(product, components):
        """components: list of (product, quantity_per_unit)"""
        bom = BillOfMaterial(product_id=product.id, reference=f"BOM-{product.name}", version="1.0", is_active=True)
        for component, quantity in components:
            bom.components.append(BOMComponent(
                product_id=component.id,
                quantity=quantity,
                unit="PCS",
                cost=component.unit_cost,
                total=component.unit_cost * quantity
            ))
        db.add(bom)
        db.commit()
        db.refresh(bom)
        return bom
    return _make


@pytest.fixture
def make_mo(db):
    def _make(product, quantity, bom=None, status="CONFIRMED", schedule_date=None):
        mo = ManufacturingOrder(
            mo_number=SequenceService.next_mo_number(db),
            finished_product_id=product.id,
            quantity=quantity,
            bill_of_material_id=bom.id if bom else None,
            status=status,
            schedule_date=schedule_date or datetime.now() + timedelta(days=3)
        )
        db.add(mo)
        db.commit()
        db.refresh(mo)
        return mo
    return _make


@pytest.fixture
def work_center(db):
    wc = WorkCenter(name="Assembly Line 1", capacity=Decimal("8"), cost_per_hour=Decimal("25"))
    db.add(wc)
    db.commit()
    db.refresh(wc)
    return wc


@pytest.fixture
def make_work_order(db, work_center):
    def _make(mo, status="STARTED", expected_duration=60, operation_name="Assembly"):
        wo = WorkOrder(
            mo_id=mo.id,
            work_center_id=work_center.id,
            operation_name=operation_name,
            expected_duration=expected_duration,
            status=status
        )
        db.add(wo)
        db.commit()
        db.refresh(wo)
        return wo
    return _make


@pytest.fixture
def set_availability(db):
    def _set(product, available, reserved=0):
        row = ComponentAvailability(product_id=product.id, available=available, reserved=reserved)
        db.add(row)
        db.commit()
        db.refresh(row)
        return row
    return _set


@pytest.fixture
def production_setup(make_product, make_bom, make_mo, make_work_order):
    """MO for 5 x Table: 2 Legs per unit (cost 10), Table cost 50, 20 Legs in stock"""
    legs = make_product("Table Leg", unit_cost=10, stock=20)
    table = make_product("Table", type="FINISHED_GOOD", unit_cost=50)
    bom = make_bom(table, [(legs, 2)])
    mo = make_mo(table, 5, bom)
    work_order = make_work_order(mo)
    return {"component": legs, "product": table, "bom": bom, "mo": mo, "work_order": work_order}
