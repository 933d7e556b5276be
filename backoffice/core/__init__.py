"""Authorization and audit core"""
from backoffice.core.audit import (
    AuditLogFilters,
    AuditPage,
    AuditQuery,
    AuditRecorder,
    InvalidCursor,
    RequestContext,
)
from backoffice.core.directory import AdminDirectory
from backoffice.core.errors import ConflictError, NotFoundError, Rejection, RejectionKind, TransientError
from backoffice.core.gate import AdminIdentity, AuthorizationGate
from backoffice.core.identity import IdentityProvider, IdentityVerifier, JWTIdentityProvider, VerifiedIdentity, bearer_token
from backoffice.core.roles import ROLE_PERMISSIONS, WILDCARD, Permission, Role, has_permission, permissions_for

__all__ = [
    "AdminDirectory",
    "AdminIdentity",
    "AuditLogFilters",
    "AuditPage",
    "AuditQuery",
    "AuditRecorder",
    "AuthorizationGate",
    "ConflictError",
    "IdentityProvider",
    "IdentityVerifier",
    "InvalidCursor",
    "JWTIdentityProvider",
    "NotFoundError",
    "Permission",
    "ROLE_PERMISSIONS",
    "Rejection",
    "RejectionKind",
    "RequestContext",
    "Role",
    "TransientError",
    "VerifiedIdentity",
    "WILDCARD",
    "bearer_token",
    "has_permission",
    "permissions_for",
]
