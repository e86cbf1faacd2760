"""
Domain Exceptions

Every error raised by the service layer carries a machine-readable ``code``
and the HTTP status the API answers with. Handlers in ``exception_handlers`` turn them
into JSON responses.

    MfgError
    +-- NotFoundError                 404  NOT_FOUND
    +-- ValidationError               400  VALIDATION_ERROR
    +-- ConflictError                 409  CONFLICT
    +-- InvalidStateTransitionError   409  INVALID_STATE_TRANSITION
    +-- InsufficientStockError        409  INSUFFICIENT_STOCK
    +-- AuthenticationError           401  AUTHENTICATION_FAILED
    +-- PermissionDeniedError         403  PERMISSION_DENIED
    +-- PersistenceFailureError       500  PERSISTENCE_FAILURE
"""
from typing import Optional


class MfgError(Exception):
    """Base class for domain errors"""
    code = "ERROR"
    status_code = 400

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotFoundError(MfgError):
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, entity: str, entity_id=None):
        super().__init__(f"{entity} not found", {"entity": entity, "id": entity_id})
        self.entity = entity
        self.entity_id = entity_id


class ValidationError(MfgError):
    code = "VALIDATION_ERROR"
    status_code = 400


class ConflictError(MfgError):
    code = "CONFLICT"
    status_code = 409


class InvalidStateTransitionError(MfgError):
    code = "INVALID_STATE_TRANSITION"
    status_code = 409

    def __init__(self, message: str, current_status: Optional[str] = None):
        super().__init__(message, {"current_status": current_status})
        self.current_status = current_status


class InsufficientStockError(MfgError):
    code = "INSUFFICIENT_STOCK"
    status_code = 409

    def __init__(self, product_name: str, required: int, available: int):
        super().__init__(
            f"Insufficient stock for component: {product_name}",
            {"product_name": product_name, "required": required, "available": available},
        )
        self.product_name = product_name
        self.required = required
        self.available = available


class AuthenticationError(MfgError):
    code = "AUTHENTICATION_FAILED"
    status_code = 401


class PermissionDeniedError(MfgError):
    code = "PERMISSION_DENIED"
    status_code = 403


class PersistenceFailureError(MfgError):
    code = "PERSISTENCE_FAILURE"
    status_code = 500
