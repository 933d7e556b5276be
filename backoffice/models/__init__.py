"""Database models"""
from backoffice.models.admin_record import AdminRecord
from backoffice.models.audit_log import AuditLog

__all__ = ["AdminRecord", "AuditLog"]
