"""
Authentication API - Register, Login, Profile, Password
"""
from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from mfgflow.core import get_db
from mfgflow.core.security import get_current_active_user
from mfgflow.models import User
from mfgflow.schemas.user import RegisterRequest, LoginRequest, ProfileUpdate, PasswordChange
from mfgflow.services import AuthService
from .serializers import user_to_dict

router = APIRouter(prefix="/auth", tags=["auth"])


def _token_response(result: dict) -> dict:
    return {
        "access_token": result["token"],
        "token_type": "bearer",
        "user": user_to_dict(result["user"])
    }


@router.post("/register", status_code=201)
def register(data: RegisterRequest, db: Session = Depends(get_db)):
    return _token_response(AuthService.register(db, data))


@router.post("/login")
def login(data: LoginRequest, db: Session = Depends(get_db)):
    """Login with email and password, returns JWT token"""
    return _token_response(AuthService.login(db, data.email, data.password))


@router.post("/token")
def login_form(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    """OAuth2 password flow; ``username`` carries the email"""
    return _token_response(AuthService.login(db, form_data.username, form_data.password))


@router.get("/me")
def get_me(current_user: User = Depends(get_current_active_user)):
    return user_to_dict(current_user)


@router.put("/profile")
def update_profile(
    data: ProfileUpdate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    return user_to_dict(AuthService.update_profile(db, current_user, data))


@router.put("/change-password")
def change_password(
    data: PasswordChange,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    AuthService.change_password(db, current_user, data.current_password, data.new_password)
    return {"message": "Password changed successfully"}
