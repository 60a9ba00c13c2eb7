import pytest

from conftest import PASSWORD
from pocket_ledger.db.core import UnauthenticatedError
from pocket_ledger.models.user import UserCreate
from pocket_ledger.services.identity import LocalIdentityGateway


@pytest.fixture
def identity(telemetry):
    return LocalIdentityGateway(telemetry)


def sign_up(identity, db, email="ana@example.com"):
    return identity.sign_up(db, UserCreate(
        email=email, name="Ana", password=PASSWORD, confirm_password=PASSWORD
    ))


def test_sign_up_then_sign_in(db, identity, telemetry):
    user = sign_up(identity, db)

    token = identity.sign_in(db, "ANA@example.com ", PASSWORD)

    assert identity.current_user_id(token) == user.db_id
    assert identity.require_user_id(token) == user.db_id
    assert telemetry.event_names() == ["sign_up_success", "sign_in_success"]


def test_password_is_stored_hashed(db, identity):
    user = sign_up(identity, db)
    assert user.password_hash != PASSWORD


def test_duplicate_email_is_rejected(db, identity):
    sign_up(identity, db)
    with pytest.raises(ValueError):
        sign_up(identity, db)


def test_wrong_password(db, identity):
    sign_up(identity, db)
    with pytest.raises(UnauthenticatedError):
        identity.sign_in(db, "ana@example.com", "Wrong1234")


def test_sign_out_invalidates_the_token(db, identity, telemetry):
    sign_up(identity, db)
    token = identity.sign_in(db, "ana@example.com", PASSWORD)

    identity.sign_out(token)

    assert identity.current_user_id(token) is None
    with pytest.raises(UnauthenticatedError):
        identity.require_user_id(token)
    assert telemetry.event_names()[-1] == "sign_out"


def test_missing_or_unknown_token(identity):
    assert identity.current_user_id(None) is None
    assert identity.current_user_id("nope") is None
    with pytest.raises(UnauthenticatedError):
        identity.require_user_id(None)


def test_mismatched_passwords_fail_validation():
    with pytest.raises(ValueError):
        UserCreate(email="a@b.co", name="A", password=PASSWORD, confirm_password="Other1234")
