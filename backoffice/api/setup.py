"""One-time owner bootstrap"""
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.orm import Session

from backoffice.api.deps import get_identity_provider, get_recorder
from backoffice.config import settings
from backoffice.core.audit import AuditRecorder, RequestContext
from backoffice.core.directory import AdminDirectory
from backoffice.core.errors import Rejection
from backoffice.core.identity import IdentityProvider, IdentityVerifier, bearer_token
from backoffice.database import get_db
from backoffice.middleware.rate_limit import limiter
from backoffice.schemas.admin_record import AdminRecordResponse, SetupResponse
from backoffice.utils.logger import logger

router = APIRouter(prefix="/admin", tags=["setup"])


def is_owner_email(email: str) -> bool:
    """Case-insensitive match against OWNER_EMAIL; always False when it is unset."""
    owner_email = settings.OWNER_EMAIL
    return bool(owner_email and email and email.lower() == owner_email.lower())


@router.post("/setup", response_model=SetupResponse)
@limiter.limit(settings.RATE_LIMIT_SETUP)
def setup_owner(
    request: Request,
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
    provider: IdentityProvider = Depends(get_identity_provider),
    recorder: AuditRecorder = Depends(get_recorder),
):
    """
    Create the first admin (role ``owner``).

    Only a verified subject whose email matches ``OWNER_EMAIL`` may call this,
    and only while the admin directory is empty. Later admins are granted
    through ``POST /admin/admins``.
    """
    identity = IdentityVerifier(provider).verify(bearer_token(authorization))

    if not is_owner_email(identity.email):
        raise Rejection.permission_denied("Only the owner can run initial setup")

    record = AdminDirectory(db).create_owner(identity.subject_id, identity.email)

    logger.info("Owner admin created", extra={"admin_uid": identity.subject_id, "action": "admin:setup"})
    recorder.record(
        identity.subject_id,
        "admin:setup",
        {"message": "Initial admin setup completed"},
        RequestContext.from_request(request),
    )

    return SetupResponse(
        message="Admin setup completed successfully",
        admin=AdminRecordResponse.model_validate(record),
    )
