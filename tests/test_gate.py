"""Tests for the authorization gate"""
import logging

import pytest
from prometheus_client import REGISTRY
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from backoffice.core.directory import AdminDirectory
from backoffice.core.errors import Rejection, RejectionKind, TransientError
from backoffice.core.gate import AdminIdentity, AuthorizationGate
from backoffice.core.identity import IdentityVerifier
from backoffice.models.admin_record import AdminRecord
from backoffice.models.audit_log import AuditLog


class SpyDirectory(AdminDirectory):
    def __init__(self, db: Session):
        super().__init__(db)
        self.lookups = 0

    def lookup(self, subject_id: str):
        self.lookups += 1
        return super().lookup(subject_id)


@pytest.fixture
def spy_directory(db: Session) -> SpyDirectory:
    return SpyDirectory(db)


@pytest.fixture
def spy_gate(identity_provider, spy_directory) -> AuthorizationGate:
    return AuthorizationGate(IdentityVerifier(identity_provider), spy_directory)


def _rejection(gate: AuthorizationGate, header, permission=None) -> Rejection:
    with pytest.raises(Rejection) as exc_info:
        gate.authorize(header, permission)
    return exc_info.value


def _decisions(outcome: str) -> float:
    return REGISTRY.get_sample_value("backoffice_authorization_decisions_total", {"outcome": outcome}) or 0.0


@pytest.mark.parametrize("header", [None, "", "Basic abc", "Bearer", "Bearer ", "token abc"])
def test_malformed_header_makes_no_external_call(spy_gate, identity_provider, spy_directory, header):
    rejection = _rejection(spy_gate, header, "users:read")

    assert rejection.kind is RejectionKind.UNAUTHENTICATED
    assert identity_provider.verify_calls == 0
    assert spy_directory.lookups == 0


def test_invalid_token_is_unauthenticated(spy_gate, identity_provider, spy_directory):
    rejection = _rejection(spy_gate, "Bearer forged-token")

    assert rejection.kind is RejectionKind.UNAUTHENTICATED
    assert rejection.message == "Invalid authentication token"
    assert identity_provider.verify_calls == 1
    assert spy_directory.lookups == 0


def test_valid_token_without_admin_record_is_permission_denied(gate, identity_provider):
    token = identity_provider.issue("uid_customer", "customer@example.com")

    rejection = _rejection(gate, f"Bearer {token}")

    assert rejection.kind is RejectionKind.PERMISSION_DENIED
    assert rejection.message == "User is not an admin"


def test_not_admin_is_denied_even_without_required_permission(gate, identity_provider):
    token = identity_provider.issue("uid_customer")
    assert _rejection(gate, f"Bearer {token}").kind is RejectionKind.PERMISSION_DENIED


def test_support_cannot_write_users(gate, make_admin):
    header = make_admin("uid_support", "support")

    rejection = _rejection(gate, header, "users:write")

    assert rejection.kind is RejectionKind.PERMISSION_DENIED
    assert "users:write" in rejection.message


def test_support_can_read_users(gate, make_admin):
    header = make_admin("uid_support", "support", "support@example.com")

    identity = gate.authorize(header, "users:read")

    assert identity == AdminIdentity(subject_id="uid_support", email="support@example.com", role="support")


@pytest.mark.parametrize("permission", ["users:delete", "admins:write", "billing:refund", "not-in-any-table", "*"])
def test_owner_passes_every_permission(gate, make_admin, permission):
    header = make_admin("uid_owner", "owner")
    assert gate.authorize(header, permission).role == "owner"


def test_any_admin_passes_without_required_permission(gate, make_admin):
    header = make_admin("uid_mod", "moderator")
    assert gate.authorize(header).subject_id == "uid_mod"


def test_unknown_stored_role_grants_nothing(gate, make_admin):
    header = make_admin("uid_legacy", "root")
    assert _rejection(gate, header, "users:read").kind is RejectionKind.PERMISSION_DENIED


def test_revocation_takes_effect_on_next_request(gate, db, make_admin):
    header = make_admin("uid_admin", "admin")
    assert gate.authorize(header, "users:write")

    db.query(AdminRecord).filter(AdminRecord.subject_id == "uid_admin").delete()
    db.commit()

    assert _rejection(gate, header, "users:write").message == "User is not an admin"


def test_role_downgrade_takes_effect_on_next_request(gate, db, make_admin):
    header = make_admin("uid_admin", "admin")
    assert gate.authorize(header, "credits:write")

    record = db.query(AdminRecord).filter(AdminRecord.subject_id == "uid_admin").one()
    record.role = "support"
    db.commit()

    assert _rejection(gate, header, "credits:write").kind is RejectionKind.PERMISSION_DENIED


def test_gate_writes_nothing(gate, db, make_admin, identity_provider):
    header = make_admin("uid_admin", "admin")
    gate.authorize(header, "users:read")
    with pytest.raises(Rejection):
        gate.authorize(header, "admins:write")
    with pytest.raises(Rejection):
        gate.authorize(f"Bearer {identity_provider.issue('uid_customer')}")

    assert db.query(AuditLog).count() == 0
    assert db.query(AdminRecord).count() == 1


def test_store_outage_is_transient(gate, db, identity_provider, monkeypatch):
    token = identity_provider.issue("uid_admin")

    def broken_query(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is down"))

    monkeypatch.setattr(db, "query", broken_query)
    before = _decisions("error")

    with pytest.raises(TransientError):
        gate.authorize(f"Bearer {token}", "users:read")

    assert _decisions("error") == before + 1


def test_decisions_are_counted_by_outcome(gate, make_admin, identity_provider):
    header = make_admin("uid_support", "support")
    outsider = f"Bearer {identity_provider.issue('uid_customer')}"
    before = {o: _decisions(o) for o in ("allowed", "unauthenticated", "permission_denied")}

    gate.authorize(header, "users:read")
    with pytest.raises(Rejection):
        gate.authorize(None)
    with pytest.raises(Rejection):
        gate.authorize("Bearer unknown-token")
    with pytest.raises(Rejection):
        gate.authorize(header, "users:write")
    with pytest.raises(Rejection):
        gate.authorize(outsider)

    assert _decisions("allowed") == before["allowed"] + 1
    assert _decisions("unauthenticated") == before["unauthenticated"] + 2
    assert _decisions("permission_denied") == before["permission_denied"] + 2


def test_rejection_is_logged_with_kind(gate, make_admin, caplog):
    header = make_admin("uid_support", "support")

    with caplog.at_level(logging.INFO, logger="backoffice"):
        with pytest.raises(Rejection):
            gate.authorize(header, "users:delete")

    [record] = [r for r in caplog.records if r.getMessage().startswith("Authorization rejected")]
    assert record.kind == "permission_denied"
    assert record.permission == "users:delete"
