"""Pydantic schemas for request/response validation"""
from backoffice.schemas.admin_record import (
    AdminGrant,
    AdminIdentityResponse,
    AdminRecordResponse,
    AdminRoleUpdate,
    SetupResponse,
)
from backoffice.schemas.audit_log import AuditLogCreate, AuditLogPage, AuditLogResponse

__all__ = [
    "AdminGrant",
    "AdminIdentityResponse",
    "AdminRecordResponse",
    "AdminRoleUpdate",
    "AuditLogCreate",
    "AuditLogPage",
    "AuditLogResponse",
    "SetupResponse",
]
