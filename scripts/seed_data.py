"""
Seed a fresh database with an admin user and a small demo factory:
two raw materials with opening stock, a finished good with a BOM,
one work center and a confirmed MO with a planned work order.

    python scripts/seed_data.py
"""
import sys
import os
from datetime import datetime, timedelta
from decimal import Decimal
sys.path.append(os.getcwd())

from mfgflow.core import SessionLocal, Base, engine
from mfgflow.models import Product, WorkCenter
from mfgflow.schemas import (
    ProductCreate, BOMCreate, BOMComponentCreate, WorkCenterCreate,
    ManufacturingOrderCreate, WorkOrderCreate, StockTransactionCreate
)
from mfgflow.services import (
    AuthService, ProductService, BOMService, WorkCenterService,
    ManufacturingOrderService, WorkOrderService, StockService
)

PRODUCTS = [
    ("Wooden Leg", "RAW_MATERIAL", "PCS", "10.00", 100),
    ("Table Top", "RAW_MATERIAL", "PCS", "45.00", 20),
    ("Dining Table", "FINISHED_GOOD", "PCS", "120.00", 0),
]


def get_or_create_product(db, name, product_type, unit, cost, opening_stock):
    product = db.query(Product).filter(Product.name == name).first()
    if product:
        print(f"Product {name} exists, skipped.")
        return product

    product = ProductService.create_product(db, ProductCreate(
        name=name, type=product_type, unit_of_measure=unit, unit_cost=Decimal(cost)
    ))
    if opening_stock:
        StockService.create_stock_transaction(db, StockTransactionCreate(
            product_id=product.id,
            transaction_type="IN",
            quantity=opening_stock,
            unit_cost=Decimal(cost),
            reference="Opening stock"
        ))
    print(f"Created product {name} (stock {opening_stock})")
    return product


def main():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        result = AuthService.create_default_admin(db)
        print(f"{result['message']}: {result['user'].email}")

        legs, top, table = [get_or_create_product(db, *row) for row in PRODUCTS]

        bom = BOMService.get_bom_by_product(db, table.id)
        if not bom:
            bom = BOMService.create_bom(db, BOMCreate(
                product_id=table.id,
                reference="BOM-DINING-TABLE",
                components=[
                    BOMComponentCreate(product_id=legs.id, quantity=4, cost=legs.unit_cost),
                    BOMComponentCreate(product_id=top.id, quantity=1, cost=top.unit_cost),
                ]
            ))
            print(f"Created BOM {bom.reference}")

        work_center = db.query(WorkCenter).filter(WorkCenter.name == "Assembly Line 1").first()
        if not work_center:
            work_center = WorkCenterService.create_work_center(db, WorkCenterCreate(
                name="Assembly Line 1", capacity=Decimal("8"), cost_per_hour=Decimal("25")
            ))
            print(f"Created work center {work_center.name}")

        mo = ManufacturingOrderService.create_manufacturing_order(db, ManufacturingOrderCreate(
            finished_product_id=table.id,
            quantity=5,
            schedule_date=datetime.now() + timedelta(days=3),
            bill_of_material_id=bom.id,
            assignee_id=result["user"].id
        ))
        ManufacturingOrderService.update_status(db, mo.id, "CONFIRMED", performed_by=result["user"].id)
        WorkOrderService.create_work_order(db, WorkOrderCreate(
            mo_id=mo.id,
            work_center_id=work_center.id,
            operation_name="Assembly",
            expected_duration=90
        ))
        print(f"Created {mo.mo_number} with one planned work order")
    finally:
        db.close()


if __name__ == "__main__":
    main()
