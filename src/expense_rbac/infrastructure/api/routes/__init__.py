"""API Routes for Expense RBAC."""

from .access_router import router as access_router
from .audit_log_router import router as audit_log_router
from .features_router import router as features_router
from .roles_router import router as roles_router

__all__ = [
    "access_router",
    "audit_log_router",
    "features_router",
    "roles_router",
]
