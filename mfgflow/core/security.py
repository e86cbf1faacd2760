"""
Authentication helpers - JWT tokens, password hashing, role checks
"""
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from typing import Optional
from datetime import datetime, timedelta, timezone
from jose import JWTError, jwt
import bcrypt

from mfgflow.core.config import settings
from mfgflow.core.database import get_db
from mfgflow.core.exceptions import AuthenticationError, PermissionDeniedError
from mfgflow.models import User

ALGORITHM = "HS256"

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token", auto_error=False)


# ============== Role permissions ==============

OWNER = "BUSINESS_OWNER"
MANAGER = "MANUFACTURING_MANAGER"
OPERATOR = "OPERATOR"
INVENTORY = "INVENTORY_MANAGER"

PERMISSIONS = {
    "USER_READ": (OWNER, MANAGER),
    "USER_WRITE": (OWNER, MANAGER),
    "USER_DELETE": (OWNER,),
    "MO_READ": (OWNER, MANAGER, OPERATOR),
    "MO_WRITE": (OWNER, MANAGER),
    "MO_DELETE": (OWNER, MANAGER),
    "WO_READ": (OWNER, MANAGER, OPERATOR),
    "WO_WRITE": (OWNER, MANAGER, OPERATOR),
    "WO_DELETE": (OWNER, MANAGER),
    "WC_READ": (OWNER, MANAGER, OPERATOR),
    "WC_WRITE": (OWNER, MANAGER),
    "WC_DELETE": (OWNER,),
    "PRODUCT_READ": (OWNER, MANAGER, OPERATOR, INVENTORY),
    "PRODUCT_WRITE": (OWNER, MANAGER, INVENTORY),
    "PRODUCT_DELETE": (OWNER, MANAGER),
    "BOM_READ": (OWNER, MANAGER, OPERATOR, INVENTORY),
    "BOM_WRITE": (OWNER, MANAGER, INVENTORY),
    "BOM_DELETE": (OWNER, MANAGER),
    "STOCK_READ": (OWNER, MANAGER, OPERATOR, INVENTORY),
    "STOCK_WRITE": (OWNER, MANAGER, INVENTORY),
    "STOCK_DELETE": (OWNER, MANAGER),
    "DASHBOARD_READ": (OWNER, MANAGER, OPERATOR, INVENTORY),
}


# ============== Helper Functions ==============

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash using bcrypt"""
    try:
        return bcrypt.checkpw(
            plain_password.encode('utf-8'),
            hashed_password.encode('utf-8')
        )
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def get_password_hash(password: str) -> str:
    """Hash a password using bcrypt"""
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token"""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=ALGORITHM)


def token_for_user(user) -> str:
    return create_access_token({"sub": str(user.id), "email": user.email, "role": user.role})


# ============== Dependencies ==============

def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
) -> Optional[User]:
    """User behind the bearer token, or None"""
    if not token:
        return None

    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
        user_id = payload.get("sub")
        if user_id is None:
            return None
    except JWTError:
        return None

    return db.query(User).filter(User.id == int(user_id)).first()


def get_current_active_user(current_user: Optional[User] = Depends(get_current_user)) -> User:
    """Require authenticated and active user"""
    if not current_user:
        raise AuthenticationError("Not authenticated")
    if not current_user.is_active:
        raise PermissionDeniedError("User is inactive")
    return current_user


def require_roles(*roles: str):
    """Dependency factory: the current user must hold one of ``roles``"""
    def checker(current_user=Depends(get_current_active_user)):
        if current_user.role not in roles:
            raise PermissionDeniedError(
                "Insufficient permissions. Required roles: " + ", ".join(roles),
                {"user_role": current_user.role}
            )
        return current_user
    return checker


def require_permission(permission: str):
    return require_roles(*PERMISSIONS[permission])
