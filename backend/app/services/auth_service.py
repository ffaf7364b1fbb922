# Overview: Service-layer operations for auth; encapsulates credential and account logic.

"""
Authentication Service

Passwords are hashed with bcrypt (BCRYPT_ROUNDS, 10 by default); every
hash carries its own salt. Session tokens are issued and validated by
token_service; logout adds the token to the persistent revocation set.

SECURITY NOTES:
- Password hashes are never part of any serialized user
- Login failures do not reveal whether the email exists
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import User, UserType
from ..models.auth import ADMINISTRATOR_USER_TYPE_ID, CUSTOMER_USER_TYPE_ID
from ..validation import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from . import customer_service, token_service
from .identifier_service import next_id
from .transaction import atomic
from app.time_utils import to_utc_z, utcnow


MIN_PASSWORD_LENGTH = 6

DEFAULT_USER_TYPES = (
    (ADMINISTRATOR_USER_TYPE_ID, "administrator"),
    (CUSTOMER_USER_TYPE_ID, "customer"),
)


class UserCreationOutcome(enum.Enum):
    CREATED = "CREATED"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    SKIPPED = "SKIPPED"  # no password supplied
    FAILED = "FAILED"


@dataclass(frozen=True)
class UserCreationResult:
    """Outcome of a best-effort account creation."""
    outcome: UserCreationOutcome
    user: User | None = None
    reason: str | None = None

    @property
    def created(self) -> bool:
        return self.outcome is UserCreationOutcome.CREATED


def validate_password_strength(password: str) -> None:
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"The password must be at least {MIN_PASSWORD_LENGTH} characters long")


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt.

    A fresh salt is generated on every call, so hashing the same password
    twice yields different strings.
    """
    rounds = int(current_app.config.get("BCRYPT_ROUNDS", 10))
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str | None) -> bool:
    """
    Verify password against bcrypt hash.

    Returns False for missing or malformed hashes.
    WHY timing-safe: bcrypt.checkpw() prevents timing attacks automatically.
    """
    if not password_hash or password is None:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def get_user_by_email(email: str) -> User | None:
    return db.session.query(User).filter(User.email == email).first()


def create_user_with_password(
    *,
    email: str,
    password: str,
    rut: str | None = None,
    name: str | None = None,
    phone: str | None = None,
    user_type_id: int | None = None,
    commit: bool = True,
) -> User:
    """
    Create a credentialed user.

    Raises ConflictError if the email is taken, ValidationError for a weak
    password.
    """
    if not email:
        raise ValidationError("Email is required")
    validate_password_strength(password)

    with atomic("Create user", commit=commit):
        if get_user_by_email(email) is not None:
            current_app.logger.warning("User already exists: %s", email)
            raise ConflictError("A user already exists with this email")

        now = utcnow()
        user = User(
            id=next_id(User),
            name=name or email.split("@")[0],
            rut=rut,
            email=email,
            phone_number=phone,
            password_hash=hash_password(password),
            register_date=now,
            updated_at=now,
            user_type_id=user_type_id or current_app.config["DEFAULT_USER_TYPE_ID"],
            is_active=True,
            is_verified=False,
        )
        db.session.add(user)
        db.session.flush()

    current_app.logger.info("User created: id=%s", user.id)
    return user


def ensure_user_with_password(**kwargs) -> UserCreationResult:
    """
    Create the user unless one with that email already exists.

    The duplicate case is an expected outcome, reported as ALREADY_EXISTS
    with the existing user.
    """
    existing = get_user_by_email(kwargs.get("email"))
    if existing is not None:
        return UserCreationResult(UserCreationOutcome.ALREADY_EXISTS, existing)
    user = create_user_with_password(**kwargs)
    return UserCreationResult(UserCreationOutcome.CREATED, user)


def authenticate(email: str, password: str) -> User | None:
    """
    Return the active user whose email and password match, else None.
    """
    user = get_user_by_email(email)
    if user is None:
        current_app.logger.warning("Login for unknown email")
        return None
    if not user.is_active:
        current_app.logger.warning("Login for inactive user id=%s", user.id)
        return None
    if not verify_password(password, user.password_hash):
        current_app.logger.warning("Incorrect password for user id=%s", user.id)
        return None
    return user


def _auth_response(user: User, token: str) -> dict:
    return {
        "access_token": token,
        "token_type": "Bearer",
        "expires_in": token_service.token_max_age(),
        "user": {
            "id": user.id,
            "email": user.email,
            "created_at": to_utc_z(user.register_date),
        },
    }


def login(email: str, password: str) -> dict:
    """
    Authenticate and issue a session token.

    Raises UnauthorizedError for unknown email or wrong password.
    """
    user = authenticate(email, password)
    if user is None:
        raise UnauthorizedError("Invalid credentials")
    token = token_service.issue_token(user.id, user.email)
    return _auth_response(user, token)


def register(data: dict) -> dict:
    """
    Create customer (if needed) and user, then sign the user in.

    The customer row comes first: users reference it by RUT.
    """
    email = (data.get("email") or "").strip()
    password = data.get("password") or ""
    rut = (data.get("rut") or "").strip()

    with atomic("Register user"):
        customer_service.find_or_create_customer(
            {
                "rut": rut,
                "name": data.get("name"),
                "phone": data.get("phone_number") or data.get("phone"),
                "email": email,
                "address": data.get("address"),
            },
            commit=False,
        )
        user = create_user_with_password(
            email=email,
            password=password,
            rut=rut,
            name=data.get("name"),
            phone=data.get("phone_number") or data.get("phone"),
            commit=False,
        )

    token = token_service.issue_token(user.id, user.email)
    return _auth_response(user, token)


def logout(token: str, expected_user_id: int) -> dict:
    """
    Revoke token on behalf of expected_user_id.

    The signature and age are checked but not revocation, so logging out
    twice with the same token succeeds both times.
    """
    claims = token_service.decode_token(token)
    if claims is None:
        raise UnauthorizedError("Invalid or expired token")
    if claims.sub != expected_user_id:
        raise UnauthorizedError("Invalid token for this user")

    token_service.revoke_token(token, user_id=claims.sub)
    current_app.logger.info("User logged out: id=%s", expected_user_id)
    return {"message": "Session closed successfully", "user_id": expected_user_id}


def get_profile(user_id: int) -> dict:
    """Public profile of the user plus the customer's address."""
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return {
        "id": user.id,
        "email": user.email,
        "created_at": to_utc_z(user.register_date),
        "name": user.name,
        "phone": user.phone_number,
        "rut": user.rut,
        "address": user.customer.address if user.customer else None,
    }


def create_default_user_types() -> list[UserType]:
    """Create the standard user types if they don't exist."""
    types = []
    for type_id, name in DEFAULT_USER_TYPES:
        existing = db.session.get(UserType, type_id)
        if existing is None:
            existing = UserType(id=type_id, name=name)
            db.session.add(existing)
        types.append(existing)
    db.session.commit()
    return types
