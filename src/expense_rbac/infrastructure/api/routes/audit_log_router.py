"""Settings audit log API routes."""

from typing import Optional

from fastapi import APIRouter, Query, status

from expense_rbac.infrastructure.api.dependencies import AccessContext, AdminUser
from expense_rbac.infrastructure.api.schemas.audit_log_schemas import (
    AuditLogListResponse,
    AuditLogResponse,
)

router = APIRouter()


@router.get(
    "",
    status_code=status.HTTP_200_OK,
    response_model=AuditLogListResponse,
    responses={
        403: {"description": "Administrator access required"},
    },
)
async def list_audit_log(
    current_user: AdminUser,
    context: AccessContext,
    user_id: Optional[str] = Query(None, description="Filter by acting user ID"),
    resource_type: Optional[str] = Query(
        None, description="Filter by resource type (role, role_permissions, feature_visibility)"
    ),
    action: Optional[str] = Query(None, description="Filter by action (create, update, delete)"),
    limit: int = Query(100, ge=1, le=500, description="Maximum number of entries to return"),
) -> AuditLogListResponse:
    """List settings changes, newest first.

    Only administrators can read the audit log.
    """
    entries = await context.store.list_audit_log(
        user_id=user_id,
        resource_type=resource_type,
        action=action,
        limit=limit,
    )

    return AuditLogListResponse(
        items=[AuditLogResponse.model_validate(entry) for entry in entries],
        total=len(entries),
        limit=limit,
    )
