"""Audit trail: best-effort recorder and paginated reader.

The recorder never fails its caller.  By the time it runs the privileged
operation has usually committed, so a lost audit row is reported through
logs and the ``backoffice_audit_records_total{outcome="failed"}`` counter
instead of surfacing as an error on an operation that actually succeeded.
"""
import base64
import binascii
import json
import threading
from typing import Any, Callable, Dict, List, NamedTuple, Optional

from sqlalchemy import and_, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backoffice.config import settings
from backoffice.core.errors import Rejection, TransientError
from backoffice.core.gate import AdminIdentity
from backoffice.core.identity import IdentityProvider
from backoffice.core.roles import Permission, has_permission
from backoffice.middleware.monitoring import record_audit_write
from backoffice.models.admin_record import AdminRecord
from backoffice.models.audit_log import AuditLog
from backoffice.utils.logger import logger


class RequestContext(NamedTuple):
    ip_address: str = ""
    user_agent: str = ""

    @classmethod
    def from_request(cls, request: Any) -> "RequestContext":
        """Build from a Starlette request; X-Forwarded-For only counts behind a trusted proxy."""
        ip_address = ""
        forwarded = request.headers.get("x-forwarded-for")
        if settings.TRUST_PROXY_HEADERS and forwarded:
            ip_address = forwarded.split(",")[0].strip()
        elif request.client:
            ip_address = request.client.host
        return cls(ip_address=ip_address or "", user_agent=request.headers.get("user-agent", ""))


# ---------------------------------------------------------------------------
# Recorder
# ---------------------------------------------------------------------------

class AuditRecorder:
    """Appends one :class:`AuditLog` row per privileged action.

    Each record uses its own session from ``session_factory`` so a failed
    write cannot leave the caller's session in a rolled-back state.
    """

    def __init__(self, session_factory: Callable[[], Session], identity_provider: Optional[IdentityProvider] = None):
        self.session_factory = session_factory
        self.identity_provider = identity_provider

    def record(
        self,
        admin_uid: str,
        action: str,
        details: Optional[Dict[str, Any]] = None,
        context: Optional[RequestContext] = None,
    ) -> None:
        try:
            log_id = self._append(admin_uid, action, details, context or RequestContext())
        except Exception:
            record_audit_write("failed")
            logger.error(
                "Failed to log admin action",
                extra={"admin_uid": admin_uid, "action": action},
                exc_info=True,
            )
            return

        record_audit_write("written")
        logger.info(f"Audit log created: {log_id}", extra={"admin_uid": admin_uid, "action": action})

    def record_detached(
        self,
        admin_uid: str,
        action: str,
        details: Optional[Dict[str, Any]] = None,
        context: Optional[RequestContext] = None,
    ) -> None:
        """Same as :meth:`record` but runs on a daemon thread and returns immediately.

        Writes still in flight when the process exits are lost.
        """
        threading.Thread(
            target=self.record,
            args=(admin_uid, action, details, context),
            daemon=True,
        ).start()

    def _append(self, admin_uid: str, action: str, details: Optional[Dict[str, Any]], context: RequestContext) -> str:
        # Round-trip through JSON so unserializable payloads fail here, not at flush
        payload = json.loads(json.dumps(details or {}, default=str))

        db = self.session_factory()
        try:
            entry = AuditLog(
                admin_uid=admin_uid,
                admin_email=self._resolve_email(db, admin_uid),
                action=action,
                details=payload,
                ip_address=context.ip_address or "",
                user_agent=context.user_agent or "",
            )
            db.add(entry)
            db.commit()
            return entry.log_id
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def _resolve_email(self, db: Session, admin_uid: str) -> str:
        """Profile email from the identity provider, else the directory's copy, else empty."""
        try:
            if self.identity_provider is not None:
                email = self.identity_provider.get_user_email(admin_uid)
                if email:
                    return email
            record = db.query(AdminRecord).filter(AdminRecord.subject_id == admin_uid).first()
            return record.email if record is not None and record.email else ""
        except Exception as exc:
            logger.debug(f"Admin email lookup failed for {admin_uid}: {exc}")
            return ""


# ---------------------------------------------------------------------------
# Query
# ---------------------------------------------------------------------------

class InvalidCursor(ValueError):
    pass


class AuditLogFilters(NamedTuple):
    action: Optional[str] = None
    actor_id: Optional[str] = None


class AuditPage(NamedTuple):
    entries: List[AuditLog]
    next_cursor: Optional[str]
    has_more: bool


def encode_cursor(log_id: str) -> str:
    return base64.urlsafe_b64encode(log_id.encode()).rstrip(b"=").decode()


def decode_cursor(cursor: str) -> str:
    padded = cursor + "=" * (-len(cursor) % 4)
    try:
        return base64.urlsafe_b64decode(padded.encode()).decode()
    except (binascii.Error, UnicodeDecodeError, ValueError) as exc:
        raise InvalidCursor("Malformed cursor") from exc


def page_size(limit: Optional[int]) -> int:
    if limit is None:
        return settings.AUDIT_PAGE_SIZE_DEFAULT
    if limit < 1:
        raise ValueError("limit must be at least 1")
    return min(limit, settings.AUDIT_PAGE_SIZE_MAX)


class AuditQuery:
    """Reverse-chronological, keyset-paginated reads over the audit log."""

    def __init__(self, db: Session):
        self.db = db

    def query(
        self,
        viewer: AdminIdentity,
        filters: Optional[AuditLogFilters] = None,
        limit: Optional[int] = None,
        cursor: Optional[str] = None,
    ) -> AuditPage:
        if not has_permission(viewer.role, Permission.AUDIT_READ):
            raise Rejection.permission_denied(f"Insufficient permissions. Required: {Permission.AUDIT_READ}")

        filters = filters or AuditLogFilters()
        limit = page_size(limit)

        try:
            query = self.db.query(AuditLog)
            if filters.action:
                query = query.filter(AuditLog.action == filters.action)
            if filters.actor_id:
                query = query.filter(AuditLog.admin_uid == filters.actor_id)
            if cursor:
                query = self._after(query, decode_cursor(cursor))

            entries = (
                query.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc())
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as exc:
            logger.error(f"Audit log query failed: {exc}")
            raise TransientError("Audit log unavailable") from exc

        next_cursor = encode_cursor(entries[-1].log_id) if entries else None
        return AuditPage(entries=entries, next_cursor=next_cursor, has_more=len(entries) == limit)

    def _after(self, query, anchor_log_id: str):
        """Restrict ``query`` to rows strictly older than the anchor row."""
        anchor_id = (
            self.db.query(AuditLog.id).filter(AuditLog.log_id == anchor_log_id).scalar()
        )
        if anchor_id is None:
            raise InvalidCursor("Cursor does not reference an audit log entry")

        # Compare against the stored value in SQL so both sides share one representation
        anchor_ts = (
            self.db.query(AuditLog.timestamp).filter(AuditLog.id == anchor_id).scalar_subquery()
        )
        return query.filter(
            or_(
                AuditLog.timestamp < anchor_ts,
                and_(AuditLog.timestamp == anchor_ts, AuditLog.id < anchor_id),
            )
        )
