"""Audit log endpoints"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from backoffice.api.deps import get_recorder, get_request_context, require_admin, require_permission
from backoffice.config import settings
from backoffice.core.audit import AuditLogFilters, AuditQuery, AuditRecorder, RequestContext
from backoffice.core.gate import AdminIdentity
from backoffice.core.roles import Permission
from backoffice.database import get_db
from backoffice.schemas.audit_log import AuditLogCreate, AuditLogPage, AuditLogResponse

router = APIRouter(prefix="/admin/audit-logs", tags=["audit"])


@router.get("", response_model=AuditLogPage)
def list_audit_logs(
    limit: int = Query(settings.AUDIT_PAGE_SIZE_DEFAULT, ge=1, description="Page size (capped at 100)"),
    cursor: Optional[str] = Query(None, description="Opaque cursor from a previous page's next_cursor"),
    action: Optional[str] = Query(None, description="Filter by action"),
    admin_uid: Optional[str] = Query(None, description="Filter by acting admin"),
    db: Session = Depends(get_db),
    viewer: AdminIdentity = Depends(require_permission(Permission.AUDIT_READ)),
    recorder: AuditRecorder = Depends(get_recorder),
    context: RequestContext = Depends(get_request_context),
):
    """
    Page through the audit trail, newest first (audit:read).

    Reading the trail is itself recorded as ``audit:read``, except when the
    caller is filtering on ``audit:read`` entries.
    """
    page = AuditQuery(db).query(
        viewer,
        AuditLogFilters(action=action, actor_id=admin_uid),
        limit=limit,
        cursor=cursor,
    )

    if action != Permission.AUDIT_READ:
        recorder.record(
            viewer.subject_id,
            Permission.AUDIT_READ,
            {"filters": {"action": action, "adminUid": admin_uid}, "resultCount": len(page.entries)},
            context,
        )

    return AuditLogPage(
        logs=[AuditLogResponse.model_validate(entry) for entry in page.entries],
        next_cursor=page.next_cursor,
        has_more=page.has_more,
    )


@router.post("")
def log_action(
    data: AuditLogCreate,
    admin: AdminIdentity = Depends(require_admin),
    recorder: AuditRecorder = Depends(get_recorder),
    context: RequestContext = Depends(get_request_context),
):
    """Record an action reported by the admin frontend (any admin)."""
    recorder.record(admin.subject_id, data.action, data.details, context)
    return {"success": True}
