"""Tests for bearer parsing and ID token verification"""
from datetime import datetime, timezone

import pytest
import requests
from cryptography.hazmat.primitives.asymmetric import rsa
from jose import jwt

from backoffice.core.errors import Rejection, RejectionKind, TransientError
from backoffice.core.identity import IdentityVerifier, JWTIdentityProvider, bearer_token
from backoffice.utils.jwt_utils import create_id_token


@pytest.fixture
def verifier() -> IdentityVerifier:
    return IdentityVerifier(JWTIdentityProvider())


def _rejection_of(fn, *args) -> Rejection:
    with pytest.raises(Rejection) as exc_info:
        fn(*args)
    return exc_info.value


@pytest.mark.parametrize("header", [None, "", "Basic dXNlcjpwYXNz", "Bearer", "Bearer ", "Bearer    ", "bearer abc", "Token abc"])
def test_bearer_token_rejects_malformed_headers(header):
    rejection = _rejection_of(bearer_token, header)
    assert rejection.kind is RejectionKind.UNAUTHENTICATED
    assert rejection.message == "Missing or invalid authorization header"


def test_bearer_token_extracts_credential():
    assert bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"


def test_verify_valid_token(verifier: IdentityVerifier):
    token = create_id_token("uid_123", email="ops@example.com")
    identity = verifier.verify(token)
    assert identity.subject_id == "uid_123"
    assert identity.email == "ops@example.com"


def test_verify_token_without_email(verifier: IdentityVerifier):
    identity = verifier.verify(create_id_token("uid_123"))
    assert identity.email == ""


def test_expired_and_forged_tokens_are_indistinguishable(verifier: IdentityVerifier):
    expired = create_id_token("uid_123", expires_in=-60)

    other_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    now = int(datetime.now(timezone.utc).timestamp())
    forged = jwt.encode({"sub": "uid_123", "iat": now, "exp": now + 600}, other_key, algorithm="RS256")

    messages = set()
    for token in (expired, forged, "not-a-jwt"):
        rejection = _rejection_of(verifier.verify, token)
        assert rejection.kind is RejectionKind.UNAUTHENTICATED
        messages.add(rejection.message)

    assert messages == {"Invalid authentication token"}


def test_token_without_subject_is_rejected(verifier: IdentityVerifier):
    rejection = _rejection_of(verifier.verify, create_id_token(""))
    assert rejection.kind is RejectionKind.UNAUTHENTICATED


def test_audience_mismatch_is_rejected():
    verifier = IdentityVerifier(JWTIdentityProvider(audience="backoffice"))
    token = create_id_token("uid_123", extra_claims={"aud": "another-app"})
    assert _rejection_of(verifier.verify, token).kind is RejectionKind.UNAUTHENTICATED


def test_issuer_mismatch_is_rejected():
    verifier = IdentityVerifier(JWTIdentityProvider(issuer="https://id.example.com"))
    token = create_id_token("uid_123", extra_claims={"iss": "https://evil.example.com"})
    assert _rejection_of(verifier.verify, token).kind is RejectionKind.UNAUTHENTICATED


def test_provider_outage_is_not_reported_as_bad_token():
    class DownProvider:
        def verify_id_token(self, token):
            raise TransientError("provider unavailable")

        def get_user_email(self, subject_id):
            return None

    with pytest.raises(TransientError):
        IdentityVerifier(DownProvider()).verify("anything")


# ---------------------------------------------------------------------------
# Profile lookup
# ---------------------------------------------------------------------------

class _Response:
    def __init__(self, status_code: int, payload: dict):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code}")


def test_profile_lookup_disabled_without_url():
    assert JWTIdentityProvider(profile_url="").get_user_email("uid_123") is None


def test_profile_lookup_fetches_email(monkeypatch):
    calls = []

    def fake_get(url, timeout):
        calls.append((url, timeout))
        return _Response(200, {"email": "ops@example.com"})

    monkeypatch.setattr(requests, "get", fake_get)
    provider = JWTIdentityProvider(profile_url="https://id.example.com/users/", profile_timeout=2)

    assert provider.get_user_email("uid_123") == "ops@example.com"
    assert calls == [("https://id.example.com/users/uid_123", 2)]


def test_profile_lookup_unknown_subject(monkeypatch):
    monkeypatch.setattr(requests, "get", lambda url, timeout: _Response(404, {}))
    assert JWTIdentityProvider(profile_url="https://id.example.com/users").get_user_email("ghost") is None


def test_profile_lookup_connection_error_is_transient(monkeypatch):
    def fake_get(url, timeout):
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr(requests, "get", fake_get)
    with pytest.raises(TransientError):
        JWTIdentityProvider(profile_url="https://id.example.com/users").get_user_email("uid_123")


def test_profile_lookup_escapes_subject_id(monkeypatch):
    calls = []

    def fake_get(url, timeout):
        calls.append(url)
        return _Response(404, {})

    monkeypatch.setattr(requests, "get", fake_get)
    JWTIdentityProvider(profile_url="https://id.example.com/users").get_user_email("../admin?x=1")

    assert calls == ["https://id.example.com/users/..%2Fadmin%3Fx%3D1"]
