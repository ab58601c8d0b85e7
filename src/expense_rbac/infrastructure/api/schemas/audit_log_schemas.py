"""Pydantic schemas for settings audit log endpoints."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class AuditLogResponse(BaseModel):
    """Response for a single settings audit log entry."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Unique identifier")
    user_id: Optional[str] = Field(None, description="ID of user who made the change")
    action: str = Field(..., description="Action: create, update, delete")
    resource_type: str = Field(..., description="role, role_permissions or feature_visibility")
    resource_id: str = Field(..., description="ID of the affected resource")
    old_values: Optional[dict[str, Any]] = Field(None, description="Values before the change")
    new_values: Optional[dict[str, Any]] = Field(None, description="Values after the change")
    timestamp: datetime = Field(..., description="Time of the change (UTC)")


class AuditLogListResponse(BaseModel):
    """Response for listing settings audit log entries."""

    items: list[AuditLogResponse] = Field(..., description="Entries, newest first")
    total: int = Field(..., description="Number of entries returned")
    limit: int = Field(..., description="Maximum number of entries requested")
