"""Pytest configuration and fixtures"""
from typing import Callable, Dict, Generator, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from backoffice.api.deps import get_identity_provider, get_session_factory
from backoffice.core.audit import AuditRecorder
from backoffice.core.directory import AdminDirectory
from backoffice.core.gate import AuthorizationGate
from backoffice.core.identity import IdentityVerifier
from backoffice.database import Base, get_db
from backoffice.main import app
from backoffice.middleware.rate_limit import limiter
from backoffice.models.admin_record import AdminRecord

TEST_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeIdentityProvider:
    """In-memory identity provider that counts every call made to it."""

    def __init__(self):
        self._tokens: Dict[str, dict] = {}
        self._emails: Dict[str, str] = {}
        self.verify_calls = 0
        self.profile_calls = 0
        self.profile_error: Optional[Exception] = None

    def issue(self, subject_id: str, email: str = "") -> str:
        token = f"tok_{subject_id}"
        self._tokens[token] = {"sub": subject_id, "email": email}
        self._emails[subject_id] = email
        return token

    def verify_id_token(self, token: str) -> dict:
        self.verify_calls += 1
        if token not in self._tokens:
            raise ValueError("signature verification failed")
        return dict(self._tokens[token])

    def get_user_email(self, subject_id: str) -> Optional[str]:
        self.profile_calls += 1
        if self.profile_error is not None:
            raise self.profile_error
        return self._emails.get(subject_id)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a fresh database for each test"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session_factory(db: Session) -> Callable[[], Session]:
    """Session factory bound to the test database (tables already created)"""
    return TestingSessionLocal


@pytest.fixture
def identity_provider() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def gate(db: Session, identity_provider: FakeIdentityProvider) -> AuthorizationGate:
    return AuthorizationGate(IdentityVerifier(identity_provider), AdminDirectory(db))


@pytest.fixture
def recorder(session_factory, identity_provider: FakeIdentityProvider) -> AuditRecorder:
    return AuditRecorder(session_factory, identity_provider)


@pytest.fixture
def make_admin(db: Session, identity_provider: FakeIdentityProvider) -> Callable[..., str]:
    """Insert an admin record and return an ``Authorization`` header value for it"""

    def _make_admin(subject_id: str, role: str, email: Optional[str] = None) -> str:
        email = email if email is not None else f"{subject_id}@example.com"
        db.add(AdminRecord(subject_id=subject_id, email=email, role=role, permissions=[]))
        db.commit()
        return f"Bearer {identity_provider.issue(subject_id, email)}"

    return _make_admin


@pytest.fixture
def auth_headers(make_admin) -> Callable[..., dict]:
    """Headers for a freshly created admin with the given role"""

    def _auth_headers(subject_id: str, role: str, email: Optional[str] = None) -> dict:
        return {"Authorization": make_admin(subject_id, role, email)}

    return _auth_headers


@pytest.fixture(scope="function")
def client(db: Session, identity_provider: FakeIdentityProvider) -> Generator[TestClient, None, None]:
    """Create test client with database and identity provider overrides"""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_identity_provider] = lambda: identity_provider
    app.dependency_overrides[get_session_factory] = lambda: TestingSessionLocal
    limiter.reset()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
