"""Authorization gate: the single check every privileged request passes.

``authorize`` runs, in order and stopping at the first failure:

1. header shape check            -> unauthenticated
2. identity provider verification -> unauthenticated
3. admin directory lookup        -> permission_denied ("User is not an admin")
4. role permission check         -> permission_denied ("Insufficient permissions. Required: P")

A ``TransientError`` from the provider or directory propagates unchanged.
It reads and computes only: no writes, no retries, no audit entry.  Callers
audit after their own operation succeeds.
"""
from typing import NamedTuple, Optional

from backoffice.core.directory import AdminDirectory
from backoffice.core.errors import Rejection, TransientError
from backoffice.core.identity import IdentityVerifier, bearer_token
from backoffice.core.roles import has_permission
from backoffice.middleware.monitoring import record_authorization
from backoffice.utils.logger import logger


class AdminIdentity(NamedTuple):
    """Authorized admin, returned by :meth:`AuthorizationGate.authorize`."""
    subject_id: str
    email: str
    role: str


class AuthorizationGate:
    def __init__(self, verifier: IdentityVerifier, directory: AdminDirectory):
        self.verifier = verifier
        self.directory = directory

    def authorize(self, authorization: Optional[str], required_permission: Optional[str] = None) -> AdminIdentity:
        try:
            identity = self._authorize(authorization, required_permission)
        except Rejection as rejection:
            record_authorization(rejection.kind.value)
            logger.info(
                f"Authorization rejected: {rejection.message}",
                extra={"kind": rejection.kind.value, "permission": required_permission},
            )
            raise
        except TransientError:
            record_authorization("error")
            raise
        record_authorization("allowed")
        return identity

    def _authorize(self, authorization: Optional[str], required_permission: Optional[str]) -> AdminIdentity:
        token = bearer_token(authorization)
        verified = self.verifier.verify(token)

        record = self.directory.lookup(verified.subject_id)
        if record is None:
            raise Rejection.permission_denied("User is not an admin")

        if required_permission and not has_permission(record.role, required_permission):
            raise Rejection.permission_denied(f"Insufficient permissions. Required: {required_permission}")

        return AdminIdentity(subject_id=verified.subject_id, email=verified.email, role=record.role)
