"""Admin directory: subject id -> AdminRecord.

Reads are uncached so a deleted or downgraded admin loses access on the very
next request.  The write helpers below carry the directory-side policies
(one record per subject, ``owner`` only via bootstrap).
"""
from typing import Callable, List, Optional, Tuple, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backoffice.core.errors import ConflictError, NotFoundError, TransientError
from backoffice.core.roles import Role, is_valid_role
from backoffice.models.admin_record import AdminRecord
from backoffice.utils.logger import logger

T = TypeVar("T")


class AdminDirectory:
    def __init__(self, db: Session):
        self.db = db

    def _read(self, fn: Callable[[], T]) -> T:
        try:
            return fn()
        except SQLAlchemyError as exc:
            logger.error(f"Admin directory read failed: {exc}")
            raise TransientError("Admin directory unavailable") from exc

    def _commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise ConflictError("Subject already has an admin record") from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error(f"Admin directory write failed: {exc}")
            raise TransientError("Admin directory unavailable") from exc

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def lookup(self, subject_id: str) -> Optional[AdminRecord]:
        """Return the subject's admin record, or None if the subject is not an admin."""
        return self._read(
            lambda: self.db.query(AdminRecord).filter(AdminRecord.subject_id == subject_id).first()
        )

    def list_admins(self) -> List[AdminRecord]:
        return self._read(
            lambda: self.db.query(AdminRecord).order_by(AdminRecord.created_at.desc(), AdminRecord.id.desc()).all()
        )

    def is_empty(self) -> bool:
        return self._read(lambda: self.db.query(AdminRecord.id).first() is None)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _insert(self, subject_id: str, email: str, role: str) -> AdminRecord:
        record = AdminRecord(subject_id=subject_id, email=email or "", role=role, permissions=[])
        self.db.add(record)
        self._commit()
        self.db.refresh(record)
        return record

    def create_owner(self, subject_id: str, email: str) -> AdminRecord:
        """Bootstrap path: create the first admin with the ``owner`` role."""
        if not self.is_empty():
            raise ConflictError("Admin setup already completed")
        return self._insert(subject_id, email, Role.OWNER.value)

    def grant(self, subject_id: str, email: str, role: str) -> AdminRecord:
        """Give admin status to a subject that does not have it yet."""
        _check_assignable(role)
        if self.lookup(subject_id) is not None:
            raise ConflictError(f"Subject {subject_id} is already an admin")
        return self._insert(subject_id, email, role)

    def set_role(self, subject_id: str, role: str) -> Tuple[str, AdminRecord]:
        """Change an admin's role; returns the previous role and the updated record."""
        _check_assignable(role)
        record = self._require(subject_id)
        if record.role == Role.OWNER.value:
            raise ConflictError("The owner's role cannot be changed")
        previous_role = record.role
        record.role = role
        self._commit()
        self.db.refresh(record)
        return previous_role, record

    def revoke(self, subject_id: str) -> str:
        """Delete the subject's admin record; returns the role it held."""
        record = self._require(subject_id)
        if record.role == Role.OWNER.value:
            raise ConflictError("The owner cannot be revoked")
        previous_role = record.role
        self.db.delete(record)
        self._commit()
        return previous_role

    def _require(self, subject_id: str) -> AdminRecord:
        record = self.lookup(subject_id)
        if record is None:
            raise NotFoundError(f"Admin {subject_id} not found")
        return record


def _check_assignable(role: str) -> None:
    if not is_valid_role(role):
        raise ValueError(f"Unknown role: {role}")
    if role == Role.OWNER.value:
        raise ConflictError("The owner role is assigned only by initial setup")
