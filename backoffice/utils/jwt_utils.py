"""JWT utilities: identity-provider keys, ID token signing and verification"""
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from jose import jwt

from backoffice.config import settings
from backoffice.utils.logger import logger

# ---------------------------------------------------------------------------
# Keypair management
# ---------------------------------------------------------------------------

_private_key: Any = None   # cryptography RSAPrivateKey object, None in verify-only mode
_public_key: Any = None    # cryptography RSAPublicKey object


def _load_keypair() -> None:
    """Load the provider keys, or auto-generate a development keypair.

    - IDENTITY_PRIVATE_KEY set: load it and derive the public half (local issuer).
    - Only IDENTITY_PUBLIC_KEY set: verify-only mode against an external provider.
    - Neither set: generate a fresh RSA-2048 keypair for this process and warn,
      so development tokens can be minted with :func:`create_id_token`.
    """
    global _private_key, _public_key

    from cryptography.hazmat.primitives import serialization
    from cryptography.hazmat.primitives.asymmetric import rsa

    if settings.IDENTITY_PRIVATE_KEY:
        pem = settings.IDENTITY_PRIVATE_KEY.encode()
        _private_key = serialization.load_pem_private_key(pem, password=None)
        _public_key = _private_key.public_key()
        logger.info("Identity keypair loaded from IDENTITY_PRIVATE_KEY setting")
    elif settings.IDENTITY_PUBLIC_KEY:
        _private_key = None
        _public_key = serialization.load_pem_public_key(settings.IDENTITY_PUBLIC_KEY.encode())
        logger.info("Identity public key loaded (verify-only mode)")
    else:
        _private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
        _public_key = _private_key.public_key()
        logger.warning(
            "IDENTITY_PUBLIC_KEY not set, auto-generated RSA-2048 keypair for this session. "
            "Only locally minted development tokens will verify, and they are invalidated on restart."
        )


def get_private_key() -> Any:
    """Return the signing key, initialising on first call. None in verify-only mode."""
    if _public_key is None:
        _load_keypair()
    return _private_key


def get_public_key() -> Any:
    """Return the verification key, initialising on first call."""
    if _public_key is None:
        _load_keypair()
    return _public_key


# ---------------------------------------------------------------------------
# Token creation (development / tests)
# ---------------------------------------------------------------------------

def create_id_token(
    subject: str,
    email: str = "",
    expires_in: Optional[int] = None,
    extra_claims: Optional[Dict[str, Any]] = None,
) -> str:
    """Sign and return an ID token shaped like the provider's.

    Args:
        subject:      Value for the 'sub' claim (the stable subject id).
        email:        Value for the 'email' claim.
        expires_in:   Lifetime in seconds; defaults to DEV_TOKEN_EXPIRE_SECONDS.
                      Negative values produce an already-expired token.
        extra_claims: Additional claims to embed.

    Raises:
        RuntimeError: if only a public key is configured.
    """
    private_key = get_private_key()
    if private_key is None:
        raise RuntimeError("Cannot sign tokens in verify-only mode (IDENTITY_PRIVATE_KEY not set)")

    lifetime = settings.DEV_TOKEN_EXPIRE_SECONDS if expires_in is None else expires_in
    now = int(datetime.now(timezone.utc).timestamp())

    payload: Dict[str, Any] = {
        "sub": subject,
        "email": email,
        "jti": str(uuid.uuid4()),
        "iat": now,
        "exp": now + lifetime,
        **(extra_claims or {}),
    }
    if settings.IDENTITY_ISSUER:
        payload.setdefault("iss", settings.IDENTITY_ISSUER)
    if settings.IDENTITY_AUDIENCE:
        payload.setdefault("aud", settings.IDENTITY_AUDIENCE)

    return jwt.encode(payload, private_key, algorithm=settings.IDENTITY_ALGORITHM)


# ---------------------------------------------------------------------------
# Token verification
# ---------------------------------------------------------------------------

def decode_id_token(
    token: str,
    public_key: Any = None,
    algorithm: Optional[str] = None,
    issuer: Optional[str] = None,
    audience: Optional[str] = None,
) -> Dict[str, Any]:
    """Verify an ID token and return its claims.

    Checks the signature and 'exp', plus 'iss' and 'aud' when configured.

    Raises:
        jose.JWTError: on any verification failure (expired tokens raise the
            ExpiredSignatureError subclass).
    """
    return jwt.decode(
        token,
        public_key if public_key is not None else get_public_key(),
        algorithms=[algorithm or settings.IDENTITY_ALGORITHM],
        issuer=issuer,
        audience=audience,
        options={"verify_aud": audience is not None},
    )
