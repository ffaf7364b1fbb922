"""
Credential tests.

Verifies:
- bcrypt hashing (fresh salt per call, malformed hashes rejected)
- Login issues a token whose subject is the user id
- Logout revokes the token; repeating it is harmless
- Expired and tampered tokens are rejected
- Registration and duplicate handling
"""

import pytest

from app.extensions import db
from app.models import Customer, RevokedToken, User
from app.services import auth_service, token_blacklist_service, token_service
from app.services.auth_service import UserCreationOutcome
from app.validation import ConflictError, NotFoundError, SigningError, UnauthorizedError, ValidationError
from app.time_utils import utcnow
from conftest import ADMIN_EMAIL, ADMIN_PASSWORD


class TestPasswordHashing:

    def test_hash_verifies(self, app):
        hashed = auth_service.hash_password("s3cret-pass")
        assert auth_service.verify_password("s3cret-pass", hashed)
        assert not auth_service.verify_password("wrong", hashed)

    def test_fresh_salt_each_call(self, app):
        assert auth_service.hash_password("same") != auth_service.hash_password("same")

    def test_malformed_hash_is_false(self, app):
        assert auth_service.verify_password("x", "not-a-bcrypt-hash") is False
        assert auth_service.verify_password("x", None) is False


class TestLogin:

    def test_token_subject_is_user_id(self, admin_user):
        result = auth_service.login(ADMIN_EMAIL, ADMIN_PASSWORD)

        claims = token_service.validate_token(result["access_token"])
        assert claims.sub == admin_user.id
        assert claims.email == ADMIN_EMAIL
        assert result["token_type"] == "Bearer"
        assert result["expires_in"] == 3600
        assert result["user"]["id"] == admin_user.id

    def test_wrong_password(self, admin_user):
        with pytest.raises(UnauthorizedError):
            auth_service.login(ADMIN_EMAIL, "not-the-password")

    def test_unknown_email(self, db_session):
        with pytest.raises(UnauthorizedError):
            auth_service.login("nobody@example.com", "whatever")

    def test_inactive_user(self, admin_user):
        admin_user.is_active = False
        db.session.commit()

        with pytest.raises(UnauthorizedError):
            auth_service.login(ADMIN_EMAIL, ADMIN_PASSWORD)

    def test_two_logins_give_distinct_tokens(self, admin_user):
        first = auth_service.login(ADMIN_EMAIL, ADMIN_PASSWORD)["access_token"]
        second = auth_service.login(ADMIN_EMAIL, ADMIN_PASSWORD)["access_token"]
        assert first != second


class TestLogout:

    def test_logout_invalidates_token(self, admin_user):
        token = auth_service.login(ADMIN_EMAIL, ADMIN_PASSWORD)["access_token"]

        auth_service.logout(token, admin_user.id)

        assert token_service.validate_token(token) is None

    def test_second_logout_is_idempotent(self, admin_user):
        token = auth_service.login(ADMIN_EMAIL, ADMIN_PASSWORD)["access_token"]

        auth_service.logout(token, admin_user.id)
        result = auth_service.logout(token, admin_user.id)

        assert result["user_id"] == admin_user.id
        assert token_blacklist_service.blacklist_size() == 1

    def test_logout_other_users_token(self, admin_user, customer_user):
        token = auth_service.login(ADMIN_EMAIL, ADMIN_PASSWORD)["access_token"]

        with pytest.raises(UnauthorizedError):
            auth_service.logout(token, customer_user.id)
        assert token_service.validate_token(token) is not None

    def test_logout_does_not_touch_other_sessions(self, admin_user):
        first = auth_service.login(ADMIN_EMAIL, ADMIN_PASSWORD)["access_token"]
        second = auth_service.login(ADMIN_EMAIL, ADMIN_PASSWORD)["access_token"]

        auth_service.logout(first, admin_user.id)

        assert token_service.validate_token(second) is not None

    def test_bearer_prefix_is_stripped(self, admin_user):
        token = auth_service.login(ADMIN_EMAIL, ADMIN_PASSWORD)["access_token"]

        token_service.revoke_token(f"Bearer {token}")

        assert token_service.validate_token(token) is None

    def test_revocation_is_persisted_by_hash(self, admin_user):
        token = auth_service.login(ADMIN_EMAIL, ADMIN_PASSWORD)["access_token"]
        auth_service.logout(token, admin_user.id)

        row = db.session.query(RevokedToken).one()
        assert row.token_hash == token_blacklist_service.hash_token(token)
        assert row.token_hash != token
        assert row.expires_at > utcnow()

    def test_purge_keeps_live_entries(self, admin_user):
        token = auth_service.login(ADMIN_EMAIL, ADMIN_PASSWORD)["access_token"]
        auth_service.logout(token, admin_user.id)

        assert token_blacklist_service.purge_expired() == 0
        assert token_service.validate_token(token) is None


class TestTokenValidation:

    def test_expired_token(self, app, admin_user, monkeypatch):
        token = auth_service.login(ADMIN_EMAIL, ADMIN_PASSWORD)["access_token"]

        monkeypatch.setitem(app.config, "TOKEN_MAX_AGE_SECONDS", -1)

        assert token_service.validate_token(token) is None

    def test_tampered_token(self, admin_user):
        token = auth_service.login(ADMIN_EMAIL, ADMIN_PASSWORD)["access_token"]
        tampered = ("X" if token[0] != "X" else "Y") + token[1:]

        assert token_service.validate_token(tampered) is None

    @pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
    def test_malformed_token(self, db_session, token):
        assert token_service.validate_token(token) is None

    def test_missing_secret(self, app, monkeypatch):
        monkeypatch.setitem(app.config, "SECRET_KEY", None)
        monkeypatch.setitem(app.config, "TOKEN_SECRET", None)

        with pytest.raises(SigningError):
            token_service.issue_token(1, "x@example.com")


class TestAccounts:

    def test_register_creates_customer_and_user(self, db_session):
        result = auth_service.register({
            "email": "nuevo@example.com",
            "password": "secret123",
            "rut": "15555555-5",
            "name": "Nuevo",
            "address": "Av. Siempre Viva 742",
        })

        user = db.session.get(User, result["user"]["id"])
        assert user.rut == "15555555-5"
        assert user.password_hash != "secret123"
        assert db.session.get(Customer, "15555555-5").address == "Av. Siempre Viva 742"
        assert token_service.validate_token(result["access_token"]).sub == user.id

    def test_register_without_name_leaves_customer_incomplete(self, db_session):
        auth_service.register({"email": "sin.nombre@example.com", "password": "secret123", "rut": "16666666-6"})

        customer = db.session.get(Customer, "16666666-6")
        assert customer.name is None
        assert customer.is_incomplete

    def test_register_with_name_completes_customer(self, db_session):
        auth_service.register({
            "email": "con.nombre@example.com",
            "password": "secret123",
            "rut": "17777777-7",
            "name": "Con Nombre",
        })

        assert not db.session.get(Customer, "17777777-7").is_incomplete

    def test_register_duplicate_email(self, admin_user):
        with pytest.raises(ConflictError):
            auth_service.register({"email": ADMIN_EMAIL, "password": "secret123", "rut": "1-9"})
        assert db.session.get(Customer, "1-9") is None

    def test_register_weak_password(self, db_session):
        with pytest.raises(ValidationError):
            auth_service.register({"email": "a@example.com", "password": "123", "rut": "1-9"})

    def test_new_users_get_default_type(self, app, db_session):
        user = auth_service.create_user_with_password(email="t@example.com", password="secret123")
        assert user.user_type_id == app.config["DEFAULT_USER_TYPE_ID"]
        assert user.name == "t"

    def test_ensure_user_reports_existing(self, admin_user):
        result = auth_service.ensure_user_with_password(email=ADMIN_EMAIL, password="other-password")

        assert result.outcome is UserCreationOutcome.ALREADY_EXISTS
        assert result.user.id == admin_user.id
        assert not result.created

    def test_ensure_user_creates(self, db_session):
        result = auth_service.ensure_user_with_password(email="n@example.com", password="secret123")

        assert result.outcome is UserCreationOutcome.CREATED
        assert db.session.get(User, result.user.id) is not None

    def test_profile_never_exposes_hash(self, admin_user):
        profile = auth_service.get_profile(admin_user.id)

        assert profile["email"] == ADMIN_EMAIL
        assert "password_hash" not in profile
        assert "password_hash" not in admin_user.to_dict()

    def test_profile_unknown_user(self, db_session):
        with pytest.raises(NotFoundError):
            auth_service.get_profile(999)
