"""API dependencies for authentication, authorization and auditing.

Every privileged endpoint resolves its caller through the
:class:`~backoffice.core.gate.AuthorizationGate`:

    @router.post("/credits")
    def grant_credits(admin: AdminIdentity = Depends(require_permission("credits:write"))):
        ...

Rejections raised here are turned into 401/403 responses by the handlers
registered in ``backoffice.main``.
"""
from typing import Callable, Optional

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from backoffice.core.audit import AuditRecorder, RequestContext
from backoffice.core.directory import AdminDirectory
from backoffice.core.gate import AdminIdentity, AuthorizationGate
from backoffice.core.identity import IdentityProvider, IdentityVerifier, JWTIdentityProvider
from backoffice.database import SessionLocal, get_db

_identity_provider: Optional[IdentityProvider] = None


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------

def get_identity_provider() -> IdentityProvider:
    """Process-wide identity provider, created on first use."""
    global _identity_provider
    if _identity_provider is None:
        _identity_provider = JWTIdentityProvider()
    return _identity_provider


def get_session_factory() -> Callable[[], Session]:
    """Session factory handed to the audit recorder (one session per record)."""
    return SessionLocal


def get_gate(
    db: Session = Depends(get_db),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> AuthorizationGate:
    return AuthorizationGate(IdentityVerifier(provider), AdminDirectory(db))


def get_recorder(
    session_factory: Callable[[], Session] = Depends(get_session_factory),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> AuditRecorder:
    return AuditRecorder(session_factory, provider)


def get_request_context(request: Request) -> RequestContext:
    return RequestContext.from_request(request)


# ---------------------------------------------------------------------------
# Gate dependencies
# ---------------------------------------------------------------------------

def require_admin(
    authorization: Optional[str] = Header(None),
    gate: AuthorizationGate = Depends(get_gate),
) -> AdminIdentity:
    """Require any admin, whatever the role."""
    return gate.authorize(authorization)


def require_permission(permission: str) -> Callable:
    """Return a FastAPI dependency that requires ``permission``.

    Args:
        permission: Permission string such as ``users:write``.

    Returns:
        A FastAPI-injectable callable that resolves to :class:`AdminIdentity`
        or raises a :class:`~backoffice.core.errors.Rejection`.
    """

    def _permission_dep(
        authorization: Optional[str] = Header(None),
        gate: AuthorizationGate = Depends(get_gate),
    ) -> AdminIdentity:
        return gate.authorize(authorization, permission)

    # Give FastAPI a unique name so it doesn't collapse distinct dependencies
    _permission_dep.__name__ = f"require_permission_{permission.replace(':', '_')}"
    return _permission_dep
