"""Admin directory management endpoints"""
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from backoffice.api.deps import get_recorder, get_request_context, require_admin, require_permission
from backoffice.core.audit import AuditRecorder, RequestContext
from backoffice.core.directory import AdminDirectory
from backoffice.core.gate import AdminIdentity
from backoffice.core.roles import Permission, permissions_for
from backoffice.database import get_db
from backoffice.schemas.admin_record import (
    AdminGrant,
    AdminIdentityResponse,
    AdminRecordResponse,
    AdminRoleUpdate,
)
from backoffice.utils.logger import logger

router = APIRouter(prefix="/admin", tags=["admins"])


@router.get("/me", response_model=AdminIdentityResponse)
def whoami(admin: AdminIdentity = Depends(require_admin)):
    """The caller's admin identity and effective permissions."""
    return AdminIdentityResponse(
        subject_id=admin.subject_id,
        email=admin.email,
        role=admin.role,
        permissions=sorted(permissions_for(admin.role)),
    )


@router.get("/admins", response_model=List[AdminRecordResponse])
def list_admins(
    db: Session = Depends(get_db),
    _: AdminIdentity = Depends(require_permission(Permission.ADMINS_READ)),
):
    """List all admins, newest first (admins:read)."""
    return AdminDirectory(db).list_admins()


@router.post("/admins", response_model=AdminRecordResponse, status_code=201)
def grant_admin(
    data: AdminGrant,
    db: Session = Depends(get_db),
    admin: AdminIdentity = Depends(require_permission(Permission.ADMINS_WRITE)),
    recorder: AuditRecorder = Depends(get_recorder),
    context: RequestContext = Depends(get_request_context),
):
    """Give admin status to a subject (admins:write)."""
    record = AdminDirectory(db).grant(data.subject_id, data.email, data.role)

    logger.info(f"Granted admin: {data.subject_id}", extra={"admin_uid": admin.subject_id, "action": "admins:grant"})
    recorder.record(
        admin.subject_id,
        "admins:grant",
        {"targetUid": data.subject_id, "email": data.email, "role": data.role},
        context,
    )
    return record


@router.put("/admins/{subject_id}/role", response_model=AdminRecordResponse)
def change_admin_role(
    subject_id: str,
    data: AdminRoleUpdate,
    db: Session = Depends(get_db),
    admin: AdminIdentity = Depends(require_permission(Permission.ADMINS_WRITE)),
    recorder: AuditRecorder = Depends(get_recorder),
    context: RequestContext = Depends(get_request_context),
):
    """Change an admin's role (admins:write). Takes effect on their next request."""
    previous_role, record = AdminDirectory(db).set_role(subject_id, data.role)

    recorder.record(
        admin.subject_id,
        "admins:role",
        {"targetUid": subject_id, "before": {"role": previous_role}, "after": {"role": data.role}},
        context,
    )
    return record


@router.delete("/admins/{subject_id}", status_code=status.HTTP_204_NO_CONTENT)
def revoke_admin(
    subject_id: str,
    db: Session = Depends(get_db),
    admin: AdminIdentity = Depends(require_permission(Permission.ADMINS_WRITE)),
    recorder: AuditRecorder = Depends(get_recorder),
    context: RequestContext = Depends(get_request_context),
):
    """Revoke admin status (admins:write). The subject is denied from their next request on."""
    previous_role = AdminDirectory(db).revoke(subject_id)

    logger.info(f"Revoked admin: {subject_id}", extra={"admin_uid": admin.subject_id, "action": "admins:revoke"})
    recorder.record(admin.subject_id, "admins:revoke", {"targetUid": subject_id, "role": previous_role}, context)
    return None
