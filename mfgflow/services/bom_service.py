"""
BOM Service - Bills of Materials and the BOM resolver
"""
from sqlalchemy.orm import Session, joinedload, selectinload
from sqlalchemy import or_
from typing import List, Optional, Tuple, Dict
from decimal import Decimal
import logging

from mfgflow.models import BillOfMaterial, BOMComponent, Product, ManufacturingOrder
from mfgflow.schemas.bom import BOMCreate, BOMUpdate, BOMComponentCreate, BOMComponentUpdate
from mfgflow.core.exceptions import NotFoundError, ConflictError, ValidationError

logger = logging.getLogger(__name__)


def _component_total(quantity: int, cost) -> Decimal:
    return Decimal(quantity or 0) * Decimal(str(cost or 0))


class BOMService:
    """BOM business logic"""

    @staticmethod
    def _bom_query(db: Session):
        return db.query(BillOfMaterial).options(
            joinedload(BillOfMaterial.product),
            selectinload(BillOfMaterial.components).joinedload(BOMComponent.product)
        )

    @staticmethod
    def _build_components(db: Session, components: List[BOMComponentCreate]) -> List[BOMComponent]:
        product_ids = [c.product_id for c in components]
        if len(set(product_ids)) != len(product_ids):
            raise ValidationError("A component may appear only once per BOM")

        found = {p.id for p in db.query(Product.id).filter(Product.id.in_(product_ids)).all()}
        for product_id in product_ids:
            if product_id not in found:
                raise NotFoundError("Component product", product_id)

        return [
            BOMComponent(
                product_id=c.product_id,
                quantity=c.quantity,
                unit=c.unit or "PCS",
                cost=c.cost,
                total=_component_total(c.quantity, c.cost)
            )
            for c in components
        ]

    # ===================== BOM CRUD =====================

    @staticmethod
    def create_bom(db: Session, bom_data: BOMCreate) -> BillOfMaterial:
        """Create a BOM with its components in one transaction"""
        product = db.query(Product).filter(Product.id == bom_data.product_id).first()
        if not product:
            raise NotFoundError("Product", bom_data.product_id)

        existing = db.query(BillOfMaterial)\
            .filter(BillOfMaterial.product_id == product.id, BillOfMaterial.is_active == True)\
            .first()
        if existing:
            raise ConflictError("Active BOM already exists for this product")

        bom = BillOfMaterial(
            product_id=product.id,
            reference=bom_data.reference,
            version=bom_data.version,
            is_active=True
        )
        bom.components = BOMService._build_components(db, bom_data.components)

        db.add(bom)
        db.commit()

        logger.info(f"Created BOM {bom.id} for {product.name} with {len(bom_data.components)} components")
        return BOMService.get_bom_by_id(db, bom.id)

    @staticmethod
    def get_boms(
        db: Session,
        search: Optional[str] = None,
        product_id: Optional[int] = None,
        is_active: Optional[bool] = None,
        page: int = 1,
        per_page: int = 10
    ) -> Tuple[List[BillOfMaterial], int]:
        """Get BOMs with filters and pagination"""
        query = db.query(BillOfMaterial).join(Product, BillOfMaterial.product_id == Product.id)

        if search:
            search_term = f"%{search}%"
            query = query.filter(
                or_(
                    BillOfMaterial.reference.ilike(search_term),
                    Product.name.ilike(search_term)
                )
            )

        if product_id:
            query = query.filter(BillOfMaterial.product_id == product_id)

        if is_active is not None:
            query = query.filter(BillOfMaterial.is_active == is_active)

        total = query.count()

        boms = query.options(
            joinedload(BillOfMaterial.product),
            selectinload(BillOfMaterial.components).joinedload(BOMComponent.product)
        ).order_by(BillOfMaterial.created_at.desc(), BillOfMaterial.id.desc())\
            .offset((page - 1) * per_page)\
            .limit(per_page)\
            .all()

        return boms, total

    @staticmethod
    def get_bom_by_id(db: Session, bom_id: int) -> BillOfMaterial:
        bom = BOMService._bom_query(db).filter(BillOfMaterial.id == bom_id).first()
        if not bom:
            raise NotFoundError("BOM", bom_id)
        return bom

    @staticmethod
    def get_bom_by_product(db: Session, product_id: int) -> Optional[BillOfMaterial]:
        """Active BOM of a product, if any"""
        return BOMService._bom_query(db)\
            .filter(BillOfMaterial.product_id == product_id, BillOfMaterial.is_active == True)\
            .first()

    @staticmethod
    def update_bom(db: Session, bom_id: int, bom_data: BOMUpdate) -> BillOfMaterial:
        """Update header fields; a components list replaces all existing lines"""
        bom = BOMService.get_bom_by_id(db, bom_id)

        update_data = bom_data.model_dump(exclude_unset=True, exclude={"components"})
        for field, value in update_data.items():
            if value is not None:
                setattr(bom, field, value)

        if bom_data.components is not None:
            new_components = BOMService._build_components(db, bom_data.components)
            bom.components.clear()
            db.flush()
            bom.components.extend(new_components)

        db.commit()
        return BOMService.get_bom_by_id(db, bom.id)

    @staticmethod
    def delete_bom(db: Session, bom_id: int) -> None:
        bom = BOMService.get_bom_by_id(db, bom_id)

        in_use = db.query(ManufacturingOrder.id)\
            .filter(ManufacturingOrder.bill_of_material_id == bom.id)\
            .first()
        if in_use:
            raise ConflictError("Cannot delete BOM that is being used in manufacturing orders")

        db.delete(bom)
        db.commit()
        logger.info(f"Deleted BOM {bom_id}")

    # ===================== COMPONENTS =====================

    @staticmethod
    def add_component(db: Session, bom_id: int, data: BOMComponentCreate) -> BOMComponent:
        bom = BOMService.get_bom_by_id(db, bom_id)

        if not db.query(Product.id).filter(Product.id == data.product_id).first():
            raise NotFoundError("Component product", data.product_id)

        existing = db.query(BOMComponent)\
            .filter(BOMComponent.bom_id == bom.id, BOMComponent.product_id == data.product_id)\
            .first()
        if existing:
            raise ConflictError("Component already exists in this BOM")

        component = BOMComponent(
            bom_id=bom.id,
            product_id=data.product_id,
            quantity=data.quantity,
            unit=data.unit or "PCS",
            cost=data.cost,
            total=_component_total(data.quantity, data.cost)
        )
        db.add(component)
        db.commit()
        db.refresh(component)
        return component

    @staticmethod
    def update_component(db: Session, component_id: int, data: BOMComponentUpdate) -> BOMComponent:
        component = db.query(BOMComponent).filter(BOMComponent.id == component_id).first()
        if not component:
            raise NotFoundError("BOM component", component_id)

        component.quantity = data.quantity
        if data.unit is not None:
            component.unit = data.unit
        if data.cost is not None:
            component.cost = data.cost
        component.total = _component_total(component.quantity, component.cost)

        db.commit()
        db.refresh(component)
        return component

    @staticmethod
    def delete_component(db: Session, component_id: int) -> None:
        component = db.query(BOMComponent).filter(BOMComponent.id == component_id).first()
        if not component:
            raise NotFoundError("BOM component", component_id)
        db.delete(component)
        db.commit()

    # ===================== COSTING & RESOLUTION =====================

    @staticmethod
    def calculate_bom_cost(db: Session, bom_id: int) -> Dict:
        """Per-unit cost of a BOM from its component lines"""
        bom = BOMService.get_bom_by_id(db, bom_id)

        total_cost = Decimal("0")
        component_costs = []
        for component in bom.components:
            line_total = _component_total(component.quantity, component.cost)
            total_cost += line_total
            component_costs.append({"component": component, "total_cost": line_total})

        return {"bom": bom, "component_costs": component_costs, "total_cost": total_cost}

    @staticmethod
    def resolve_components(bom: BillOfMaterial, quantity: int) -> List[Dict]:
        """Scale the BOM's per-unit lines to ``quantity`` units, in insert order"""
        if quantity is None or quantity < 1:
            raise ValidationError("Quantity must be at least 1", {"quantity": quantity})

        return [
            {
                "product_id": component.product_id,
                "product_name": component.product.name,
                "quantity_per_unit": component.quantity,
                "required": component.quantity * quantity,
                "unit_cost": component.product.unit_cost
            }
            for component in bom.components
        ]

    @staticmethod
    def resolve_bom(db: Session, bom_id: int, quantity: int) -> List[Dict]:
        """Absolute component requirements for producing ``quantity`` units"""
        bom = BOMService.get_bom_by_id(db, bom_id)
        return BOMService.resolve_components(bom, quantity)
