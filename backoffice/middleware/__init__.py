"""Middleware modules for production-ready features"""
from backoffice.middleware.monitoring import (
    MonitoringMiddleware,
    record_audit_write,
    record_authorization,
)
from backoffice.middleware.rate_limit import limiter

__all__ = [
    "MonitoringMiddleware",
    "record_audit_write",
    "record_authorization",
    "limiter",
]
