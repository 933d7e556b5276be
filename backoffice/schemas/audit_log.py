"""Audit log schemas"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class AuditLogCreate(BaseModel):
    """Client-reported admin action"""

    action: str = Field(..., description="Action performed, conventionally resource:verb")
    details: Optional[Dict[str, Any]] = Field(default_factory=dict, description="Action-specific payload")

    @field_validator("action")
    @classmethod
    def action_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Action is required")
        return value

    @field_validator("details")
    @classmethod
    def details_default(cls, value: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        return value or {}


class AuditLogResponse(BaseModel):
    """Schema for audit log response"""

    id: str
    admin_uid: str
    admin_email: str = ""
    action: str
    details: Dict[str, Any] = Field(default_factory=dict)
    ip_address: str = ""
    user_agent: str = ""
    timestamp: Optional[datetime] = None

    class Config:
        from_attributes = True

    @model_validator(mode='before')
    @classmethod
    def map_log_id(cls, data):
        """Expose the public log_id as ``id``; the integer key stays internal"""
        if hasattr(data, '__dict__') and hasattr(data, 'log_id'):
            return {
                'id': data.log_id,
                'admin_uid': data.admin_uid,
                'admin_email': data.admin_email or '',
                'action': data.action,
                'details': data.details or {},
                'ip_address': data.ip_address or '',
                'user_agent': data.user_agent or '',
                'timestamp': data.timestamp,
            }
        return data


class AuditLogPage(BaseModel):
    success: bool = True
    logs: List[AuditLogResponse]
    next_cursor: Optional[str] = None
    has_more: bool = False
