"""AdminRecord model: one row per privileged subject"""
from sqlalchemy import Column, DateTime, Integer, JSON, String, func

from backoffice.database import Base


class AdminRecord(Base):
    """A subject holding admin status.

    ``subject_id`` is the identity provider's stable id and is unique, so a
    subject has at most one record.  Authorization derives entirely from
    ``role``; ``permissions`` is reserved for per-admin overrides and is
    stored empty.  Revocation deletes the row.
    """

    __tablename__ = "admins"

    id = Column(Integer, primary_key=True)
    subject_id = Column(String(128), unique=True, nullable=False, index=True)
    email = Column(String(255), nullable=False, default="")
    role = Column(String(20), nullable=False)                    # owner|super_admin|admin|moderator|support
    permissions = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
