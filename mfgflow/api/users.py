"""
Users API - administration of accounts and roles
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from mfgflow.core import get_db
from mfgflow.core.security import require_permission
from mfgflow.schemas.user import RoleUpdate
from mfgflow.services import AuthService
from .serializers import user_to_dict

router = APIRouter(prefix="/users", tags=["users"])


@router.get("")
def list_users(db: Session = Depends(get_db), _=Depends(require_permission("USER_READ"))):
    users = AuthService.get_users(db)
    return {"users": [user_to_dict(u) for u in users], "total": len(users)}


@router.get("/{user_id}")
def get_user(user_id: int, db: Session = Depends(get_db), _=Depends(require_permission("USER_READ"))):
    return user_to_dict(AuthService.get_user_by_id(db, user_id))


@router.put("/{user_id}/role")
def update_role(
    user_id: int,
    data: RoleUpdate,
    db: Session = Depends(get_db),
    _=Depends(require_permission("USER_WRITE"))
):
    return user_to_dict(AuthService.update_role(db, user_id, data.role))


@router.put("/{user_id}/activate")
def activate_user(user_id: int, db: Session = Depends(get_db), _=Depends(require_permission("USER_WRITE"))):
    return user_to_dict(AuthService.set_active(db, user_id, True))


@router.put("/{user_id}/deactivate")
def deactivate_user(user_id: int, db: Session = Depends(get_db), _=Depends(require_permission("USER_DELETE"))):
    return user_to_dict(AuthService.set_active(db, user_id, False))
