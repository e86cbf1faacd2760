"""
Bills of Materials API
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from mfgflow.core import get_db
from mfgflow.core.security import require_permission
from mfgflow.schemas.bom import BOMCreate, BOMUpdate, BOMComponentCreate, BOMComponentUpdate
from mfgflow.services import BOMService
from .serializers import bom_to_dict, component_to_dict, requirement_to_dict, page_meta

router = APIRouter(prefix="/boms", tags=["boms"])


# ===================== BOMS =====================

@router.get("")
def list_boms(
    search: Optional[str] = Query(None),
    product_id: Optional[int] = Query(None),
    is_active: Optional[bool] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    _=Depends(require_permission("BOM_READ"))
):
    boms, total = BOMService.get_boms(db, search, product_id, is_active, page, per_page)
    return {"boms": [bom_to_dict(b) for b in boms], **page_meta(total, page, per_page)}


@router.post("", status_code=201)
def create_bom(data: BOMCreate, db: Session = Depends(get_db), _=Depends(require_permission("BOM_WRITE"))):
    return bom_to_dict(BOMService.create_bom(db, data))


@router.get("/product/{product_id}")
def get_bom_by_product(product_id: int, db: Session = Depends(get_db), _=Depends(require_permission("BOM_READ"))):
    bom = BOMService.get_bom_by_product(db, product_id)
    return {"bom": bom_to_dict(bom) if bom else None}


@router.get("/{bom_id}")
def get_bom(bom_id: int, db: Session = Depends(get_db), _=Depends(require_permission("BOM_READ"))):
    return bom_to_dict(BOMService.get_bom_by_id(db, bom_id))


@router.put("/{bom_id}")
def update_bom(
    bom_id: int,
    data: BOMUpdate,
    db: Session = Depends(get_db),
    _=Depends(require_permission("BOM_WRITE"))
):
    return bom_to_dict(BOMService.update_bom(db, bom_id, data))


@router.delete("/{bom_id}")
def delete_bom(bom_id: int, db: Session = Depends(get_db), _=Depends(require_permission("BOM_DELETE"))):
    BOMService.delete_bom(db, bom_id)
    return {"message": "BOM deleted successfully"}


@router.get("/{bom_id}/cost")
def bom_cost(bom_id: int, db: Session = Depends(get_db), _=Depends(require_permission("BOM_READ"))):
    result = BOMService.calculate_bom_cost(db, bom_id)
    return {
        "bom_id": result["bom"].id,
        "component_costs": [
            {**component_to_dict(line["component"]), "total_cost": float(line["total_cost"])}
            for line in result["component_costs"]
        ],
        "total_cost": float(result["total_cost"])
    }


@router.get("/{bom_id}/resolve")
def resolve_bom(
    bom_id: int,
    quantity: int = Query(...),
    db: Session = Depends(get_db),
    _=Depends(require_permission("BOM_READ"))
):
    """Component requirements for producing ``quantity`` units"""
    components = BOMService.resolve_bom(db, bom_id, quantity)
    return {
        "bom_id": bom_id,
        "quantity": quantity,
        "components": [requirement_to_dict(c) for c in components]
    }


# ===================== COMPONENTS =====================

@router.post("/{bom_id}/components", status_code=201)
def add_component(
    bom_id: int,
    data: BOMComponentCreate,
    db: Session = Depends(get_db),
    _=Depends(require_permission("BOM_WRITE"))
):
    return component_to_dict(BOMService.add_component(db, bom_id, data))


@router.put("/components/{component_id}")
def update_component(
    component_id: int,
    data: BOMComponentUpdate,
    db: Session = Depends(get_db),
    _=Depends(require_permission("BOM_WRITE"))
):
    return component_to_dict(BOMService.update_component(db, component_id, data))


@router.delete("/components/{component_id}")
def delete_component(component_id: int, db: Session = Depends(get_db), _=Depends(require_permission("BOM_WRITE"))):
    BOMService.delete_component(db, component_id)
    return {"message": "BOM component deleted successfully"}
