"""Audit log model"""
import uuid

from sqlalchemy import Column, DateTime, Index, Integer, JSON, String, Text, func

from backoffice.database import Base


def generate_uuid_string():
    """Generate UUID as string for SQLite compatibility"""
    return str(uuid.uuid4())


class AuditLog(Base):
    """AuditLog model - append-only record of privileged admin actions.

    Rows are inserted once and never updated or deleted by this package.
    ``timestamp`` is assigned by the database so reverse-chronological reads
    follow write order; ``id`` breaks ties between rows sharing a timestamp.
    """

    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    log_id = Column(String(36), default=generate_uuid_string, unique=True, nullable=False, index=True)
    admin_uid = Column(String(128), nullable=False, index=True)
    admin_email = Column(String(255), nullable=False, default="")
    action = Column(String(255), nullable=False, index=True)
    details = Column(JSON, nullable=False, default=dict)
    ip_address = Column(String(64), nullable=False, default="")
    user_agent = Column(Text, nullable=False, default="")
    timestamp = Column(DateTime, nullable=False, server_default=func.now(), index=True)

    __table_args__ = (
        Index("ix_audit_logs_admin_uid_timestamp", "admin_uid", "timestamp"),
    )
