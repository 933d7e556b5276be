"""Identity verification against the external identity provider.

The provider owns signature and expiry validation.  This module only turns
an ``Authorization`` header into a bearer credential and maps every provider
rejection onto one generic ``unauthenticated`` rejection, so callers cannot
tell an expired token from a forged one.
"""
from typing import Any, Dict, NamedTuple, Optional, Protocol
from urllib.parse import quote

import requests

from backoffice.config import settings
from backoffice.core.errors import Rejection, TransientError
from backoffice.utils.jwt_utils import decode_id_token
from backoffice.utils.logger import logger

_BEARER_PREFIX = "Bearer "


class VerifiedIdentity(NamedTuple):
    subject_id: str
    email: str


class IdentityProvider(Protocol):
    """What the core needs from an identity provider."""

    def verify_id_token(self, token: str) -> Dict[str, Any]:
        """Return the token's claims or raise on any invalid token."""

    def get_user_email(self, subject_id: str) -> Optional[str]:
        """Return the subject's profile email, or None if unknown."""


def bearer_token(authorization: Optional[str]) -> str:
    """Extract the credential from an ``Authorization: Bearer <token>`` header.

    Raises:
        Rejection: unauthenticated, when the header is absent or malformed.
    """
    if not authorization or not authorization.startswith(_BEARER_PREFIX):
        raise Rejection.unauthenticated("Missing or invalid authorization header")
    token = authorization[len(_BEARER_PREFIX):].strip()
    if not token:
        raise Rejection.unauthenticated("Missing or invalid authorization header")
    return token


class IdentityVerifier:
    """Validates bearer credentials through an :class:`IdentityProvider`."""

    def __init__(self, provider: IdentityProvider):
        self.provider = provider

    def verify(self, token: str) -> VerifiedIdentity:
        try:
            claims = self.provider.verify_id_token(token)
        except TransientError:
            raise
        except Exception as exc:
            logger.debug(f"ID token rejected by provider: {exc}")
            raise Rejection.unauthenticated()

        subject_id = claims.get("sub")
        if not subject_id:
            raise Rejection.unauthenticated()
        return VerifiedIdentity(subject_id=str(subject_id), email=claims.get("email") or "")


class JWTIdentityProvider:
    """Identity provider backed by signed JWT ID tokens.

    Tokens are verified locally with the provider's public key.  Profile
    lookups go to ``IDENTITY_PROFILE_URL`` when configured; without it no
    profile email is available.
    """

    def __init__(
        self,
        public_key: Any = None,
        algorithm: Optional[str] = None,
        issuer: Optional[str] = None,
        audience: Optional[str] = None,
        profile_url: Optional[str] = None,
        profile_timeout: Optional[int] = None,
    ):
        self.public_key = public_key
        self.algorithm = algorithm or settings.IDENTITY_ALGORITHM
        self.issuer = issuer if issuer is not None else settings.IDENTITY_ISSUER
        self.audience = audience if audience is not None else settings.IDENTITY_AUDIENCE
        self.profile_url = profile_url if profile_url is not None else settings.IDENTITY_PROFILE_URL
        self.profile_timeout = profile_timeout or settings.IDENTITY_PROFILE_TIMEOUT

    def verify_id_token(self, token: str) -> Dict[str, Any]:
        return decode_id_token(
            token,
            public_key=self.public_key,
            algorithm=self.algorithm,
            issuer=self.issuer,
            audience=self.audience,
        )

    def get_user_email(self, subject_id: str) -> Optional[str]:
        if not self.profile_url:
            return None

        url = f"{self.profile_url.rstrip('/')}/{quote(subject_id, safe='')}"
        try:
            resp = requests.get(url, timeout=self.profile_timeout)
        except requests.RequestException as exc:
            raise TransientError(f"Identity profile lookup failed: {exc}") from exc

        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return resp.json().get("email") or None
