"""
Product Service - Business Logic for Products
"""
from sqlalchemy.orm import Session
from sqlalchemy import func
from typing import List, Optional, Tuple, Dict
import logging

from mfgflow.models import (
    Product, ProductType, UNITS_OF_MEASURE, BillOfMaterial, BOMComponent,
    StockLedger, ManufacturingOrder
)
from mfgflow.schemas.product import ProductCreate, ProductUpdate
from mfgflow.core.exceptions import NotFoundError, ConflictError

logger = logging.getLogger(__name__)


class ProductService:
    """Product business logic"""

    SORT_FIELDS = {
        "name": Product.name,
        "type": Product.type,
        "unit_cost": Product.unit_cost,
        "current_stock": Product.current_stock,
        "created_at": Product.created_at,
    }

    @staticmethod
    def get_products(
        db: Session,
        search: Optional[str] = None,
        product_type: Optional[str] = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        page: int = 1,
        per_page: int = 10
    ) -> Tuple[List[Product], int]:
        """Get products with filters and pagination"""
        query = db.query(Product)

        if search:
            query = query.filter(Product.name.ilike(f"%{search}%"))

        if product_type:
            query = query.filter(Product.type == product_type)

        total = query.count()

        column = ProductService.SORT_FIELDS.get(sort_by, Product.created_at)
        order = column.asc() if sort_order.lower() == "asc" else column.desc()

        products = query.order_by(order, Product.id)\
            .offset((page - 1) * per_page)\
            .limit(per_page)\
            .all()

        return products, total

    @staticmethod
    def get_product_by_id(db: Session, product_id: int) -> Product:
        product = db.query(Product).filter(Product.id == product_id).first()
        if not product:
            raise NotFoundError("Product", product_id)
        return product

    @staticmethod
    def get_product_detail(db: Session, product_id: int) -> Dict:
        """Product with its active BOM, latest ledger rows and latest MOs"""
        product = ProductService.get_product_by_id(db, product_id)

        active_bom = db.query(BillOfMaterial)\
            .filter(BillOfMaterial.product_id == product.id, BillOfMaterial.is_active == True)\
            .first()

        recent_ledger = db.query(StockLedger)\
            .filter(StockLedger.product_id == product.id)\
            .order_by(StockLedger.transaction_date.desc(), StockLedger.id.desc())\
            .limit(10)\
            .all()

        recent_orders = db.query(ManufacturingOrder)\
            .filter(ManufacturingOrder.finished_product_id == product.id)\
            .order_by(ManufacturingOrder.created_at.desc(), ManufacturingOrder.id.desc())\
            .limit(5)\
            .all()

        return {
            "product": product,
            "bom": active_bom,
            "stock_ledger": recent_ledger,
            "manufacturing_orders": recent_orders
        }

    @staticmethod
    def _ensure_unique_name(db: Session, name: str, exclude_id: Optional[int] = None) -> None:
        query = db.query(Product).filter(func.lower(Product.name) == name.lower())
        if exclude_id is not None:
            query = query.filter(Product.id != exclude_id)
        if query.first():
            raise ConflictError("Product with this name already exists")

    @staticmethod
    def create_product(db: Session, product_data: ProductCreate) -> Product:
        """Create new product"""
        ProductService._ensure_unique_name(db, product_data.name)

        product = Product(
            name=product_data.name,
            type=product_data.type,
            unit_of_measure=product_data.unit_of_measure,
            unit_cost=product_data.unit_cost,
            current_stock=0
        )

        db.add(product)
        db.commit()
        db.refresh(product)
        logger.info(f"Created product {product.name} ({product.type})")
        return product

    @staticmethod
    def update_product(db: Session, product_id: int, product_data: ProductUpdate) -> Product:
        """Update product; current_stock is not editable here"""
        product = ProductService.get_product_by_id(db, product_id)

        update_data = product_data.model_dump(exclude_unset=True)
        if update_data.get("name") and update_data["name"] != product.name:
            ProductService._ensure_unique_name(db, update_data["name"], exclude_id=product.id)

        for field, value in update_data.items():
            if value is not None:
                setattr(product, field, value)

        db.commit()
        db.refresh(product)
        return product

    @staticmethod
    def delete_product(db: Session, product_id: int) -> None:
        """Delete product unless BOMs, ledger rows or MOs still point at it"""
        product = ProductService.get_product_by_id(db, product_id)

        in_use = (
            db.query(BOMComponent.id).filter(BOMComponent.product_id == product.id).first()
            or db.query(BillOfMaterial.id).filter(BillOfMaterial.product_id == product.id).first()
            or db.query(StockLedger.id).filter(StockLedger.product_id == product.id).first()
            or db.query(ManufacturingOrder.id).filter(ManufacturingOrder.finished_product_id == product.id).first()
        )
        if in_use:
            raise ConflictError("Cannot delete product that is used in BOMs, stock ledger, or manufacturing orders")

        if product.availability is not None:
            db.delete(product.availability)
        db.delete(product)
        db.commit()
        logger.info(f"Deleted product {product_id}")

    @staticmethod
    def get_product_types() -> List[str]:
        return [t.value for t in ProductType]

    @staticmethod
    def get_units_of_measure() -> List[str]:
        return list(UNITS_OF_MEASURE)
