"""
Auth Service - Users, login and password management
"""
from sqlalchemy.orm import Session
from sqlalchemy import func
from typing import List, Dict, Optional
import logging

from mfgflow.models import User, UserRole
from mfgflow.schemas.user import RegisterRequest, ProfileUpdate
from mfgflow.core.security import get_password_hash, verify_password, token_for_user
from mfgflow.core.exceptions import NotFoundError, ConflictError, ValidationError, AuthenticationError

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_EMAIL = "admin@mfgflow.local"
DEFAULT_ADMIN_PASSWORD = "Admin@1234"


class AuthService:

    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(func.lower(User.email) == email.lower()).first()

    @staticmethod
    def register(db: Session, data: RegisterRequest) -> Dict:
        if AuthService.get_user_by_email(db, data.email):
            raise ConflictError("User with this email already exists")

        user = User(
            name=data.name,
            email=data.email,
            password_hash=get_password_hash(data.password),
            mobile_no=data.mobile_no,
            role=data.role,
            is_active=True
        )
        db.add(user)
        db.commit()
        db.refresh(user)

        logger.info(f"Registered user {user.email} as {user.role}")
        return {"user": user, "token": token_for_user(user)}

    @staticmethod
    def login(db: Session, email: str, password: str) -> Dict:
        user = AuthService.get_user_by_email(db, email)
        if not user or not user.is_active or not verify_password(password, user.password_hash):
            logger.warning(f"Failed login for {email}")
            raise AuthenticationError("Invalid credentials")

        user.last_login_at = func.now()
        db.commit()
        db.refresh(user)
        return {"user": user, "token": token_for_user(user)}

    @staticmethod
    def change_password(db: Session, user: User, current_password: str, new_password: str) -> None:
        if current_password == new_password:
            raise ValidationError("New password must be different from current password")
        if len(new_password) < 8:
            raise ValidationError("New password must be at least 8 characters long")
        if not verify_password(current_password, user.password_hash):
            raise ValidationError("Current password is incorrect")

        user.password_hash = get_password_hash(new_password)
        db.commit()

    @staticmethod
    def update_profile(db: Session, user: User, data: ProfileUpdate) -> User:
        update_data = data.model_dump(exclude_unset=True)

        email = update_data.get("email")
        if email:
            taken = db.query(User.id)\
                .filter(func.lower(User.email) == email.lower(), User.id != user.id)\
                .first()
            if taken:
                raise ConflictError("Email is already taken by another user")

        for field, value in update_data.items():
            if value is not None:
                setattr(user, field, value)

        db.commit()
        db.refresh(user)
        return user

    # ===================== ADMINISTRATION =====================

    @staticmethod
    def get_users(db: Session) -> List[User]:
        return db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()

    @staticmethod
    def get_user_by_id(db: Session, user_id: int) -> User:
        user = db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFoundError("User", user_id)
        return user

    @staticmethod
    def update_role(db: Session, user_id: int, role: str) -> User:
        user = AuthService.get_user_by_id(db, user_id)
        user.role = role
        db.commit()
        db.refresh(user)
        logger.info(f"User {user.email} role set to {role}")
        return user

    @staticmethod
    def set_active(db: Session, user_id: int, is_active: bool) -> User:
        user = AuthService.get_user_by_id(db, user_id)
        user.is_active = is_active
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def create_default_admin(
        db: Session,
        email: str = DEFAULT_ADMIN_EMAIL,
        password: str = DEFAULT_ADMIN_PASSWORD
    ) -> Dict:
        existing = AuthService.get_user_by_email(db, email)
        if existing:
            return {"message": "Default admin user already exists", "user": existing}

        admin = User(
            name="Administrator",
            email=email,
            password_hash=get_password_hash(password),
            role=UserRole.BUSINESS_OWNER.value,
            is_active=True
        )
        db.add(admin)
        db.commit()
        db.refresh(admin)

        logger.info(f"Created default admin {email}")
        return {"message": "Default admin user created successfully", "user": admin}
