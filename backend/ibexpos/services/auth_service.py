# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

Staff accounts (platform_admin, merchant, cashier) authenticate with email
and password. Passwords are hashed with bcrypt; the cost factor comes from
BCRYPT_ROUNDS. Emails are stored lower-cased and compared lower-cased.

Merchant self-registration creates a pending account that a platform admin
activates.
"""

import logging

import bcrypt
from flask import current_app
from sqlalchemy.exc import IntegrityError, OperationalError

from .. import messages
from ..extensions import db
from ..models import Store, User
from ..models.auth import ROLE_CASHIER, ROLE_MERCHANT, ROLE_PLATFORM_ADMIN, STAFF_ROLES
from ..time_utils import utcnow
from ..validation import EMAIL_RE, ValidationError, normalize_phone
from . import session_service, tenant_service
from .concurrency import run_with_retry
from .errors import AuthError, ConflictError, ForbiddenError, NotFoundError, ServiceError

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6

PLATFORM_ADMIN_EMAIL = "admin@ibex.com"
PLATFORM_ADMIN_PASSWORD = "admin123"
PLATFORM_ADMIN_NAME = "مدير النظام"


def validate_password(password) -> None:
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(messages.PASSWORD_TOO_SHORT)


def hash_password(password: str) -> str:
    """Hash password using bcrypt with the configured cost factor."""
    rounds = current_app.config.get("BCRYPT_ROUNDS", 10)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    bcrypt.checkpw() is timing-safe. Malformed hashes verify as False.
    """
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        logger.warning("Rejected malformed password hash")
        return False


def normalize_email(email) -> str:
    return str(email or "").strip().lower()


def get_user_by_email(email: str) -> User | None:
    return db.session.query(User).filter(User.email == normalize_email(email), User.alive()).first()


def get_user(user_id: int) -> User:
    user = db.session.query(User).filter(User.id == user_id, User.alive()).first()
    if not user:
        raise NotFoundError(messages.USER_NOT_FOUND)
    return user


def authenticate_user(email: str, password: str) -> User:
    """
    Check credentials and account status.

    Raises AuthError (401) for an unknown email or a wrong password and
    ForbiddenError (403) for pending or suspended accounts.
    """
    user = get_user_by_email(email)
    if not user:
        raise AuthError(messages.EMAIL_NOT_FOUND)

    if not verify_password(password, user.password_hash):
        raise AuthError(messages.PASSWORD_WRONG)

    if user.status != "active":
        raise ForbiddenError(messages.ACCOUNT_INACTIVE)

    return user


def login(email: str, password: str, *, user_agent: str | None = None, ip_address: str | None = None) -> dict:
    """Authenticate and open a session. Returns the user payload plus its token."""
    user = authenticate_user(email, password)
    user.last_login_at = utcnow()
    _, token = session_service.create_session(user.id, user_agent=user_agent, ip_address=ip_address)

    data = user.to_dict()
    data["token"] = token
    return data


def logout(token: str) -> bool:
    return session_service.revoke_session(token)


def create_user(
    *,
    name: str,
    email: str,
    password: str,
    role: str = ROLE_CASHIER,
    store_id: int | None = None,
    status: str = "active",
    phone: str | None = None,
) -> User:
    """Create a staff user; the caller commits."""
    name = (name or "").strip()
    if not name:
        raise ValidationError(messages.NAME_REQUIRED)

    email = normalize_email(email)
    if not EMAIL_RE.match(email):
        raise ValidationError(messages.EMAIL_INVALID)

    validate_password(password)

    if role not in STAFF_ROLES:
        raise ValidationError(messages.ROLE_INVALID)

    if get_user_by_email(email):
        raise ConflictError(messages.EMAIL_TAKEN)

    user = User(
        name=name,
        email=email,
        password_hash=hash_password(password),
        role=role,
        store_id=store_id,
        status=status,
        phone=phone,
    )
    db.session.add(user)
    db.session.flush()
    return user


def register_user(data: dict, *, acting_user: User) -> User:
    """
    Staff user created from the back office.

    Merchants may only add cashiers to their own stores; platform admins may
    create any role.
    """
    data = data or {}
    role = data.get("role") or ROLE_CASHIER
    store_id = data.get("storeId")

    if acting_user.role != ROLE_PLATFORM_ADMIN:
        if role != ROLE_CASHIER:
            raise ForbiddenError(messages.FORBIDDEN)
        if store_id is None:
            store_id = acting_user.store_id
        store = db.session.query(Store).filter(Store.id == store_id, Store.alive()).first() if store_id else None
        if not store or store.merchant_id != acting_user.id:
            raise NotFoundError(messages.STORE_NOT_FOUND)

    def _op():
        user = create_user(
            name=data.get("name"),
            email=data.get("email"),
            password=data.get("password"),
            role=role,
            store_id=store_id,
        )
        db.session.commit()
        return user

    return run_with_retry(_op)


def register_merchant(data: dict) -> dict:
    """
    Public merchant sign-up. The account starts pending.

    Connection failures are retried three times with a fixed delay
    (REGISTRATION_RETRY_DELAY seconds).
    """
    data = data or {}
    email = normalize_email(data.get("email"))
    if not EMAIL_RE.match(email):
        raise ValidationError(messages.EMAIL_INVALID)

    phone = normalize_phone(data.get("phone"))
    validate_password(data.get("password"))

    name = (data.get("name") or "").strip()
    if not name:
        raise ValidationError(messages.NAME_REQUIRED)

    def _op():
        if get_user_by_email(email):
            raise ConflictError(messages.EMAIL_TAKEN)
        user = User(
            name=name,
            email=email,
            password_hash=hash_password(data["password"]),
            role=ROLE_MERCHANT,
            status="pending",
            phone=phone,
        )
        db.session.add(user)
        db.session.commit()
        return user

    try:
        user = run_with_retry(
            _op,
            attempts=3,
            backoff_base=current_app.config.get("REGISTRATION_RETRY_DELAY", 1.0),
            fixed=True,
        )
    except IntegrityError:
        # Lost a race with a concurrent sign-up for the same email
        raise ConflictError(messages.EMAIL_TAKEN)
    except OperationalError:
        logger.exception("Merchant registration failed after retries")
        raise ServiceError(messages.DB_CONNECTION_FAILED, status_code=503)

    logger.info("Merchant %s registered, awaiting approval", user.id)
    return {"success": True, "message": messages.MERCHANT_REGISTERED, "userId": user.id}


def list_store_users(store_id: int) -> list[User]:
    """Staff attached to a store: its cashiers plus the owning merchant."""
    store = db.session.query(Store).filter(Store.id == store_id).first()
    query = db.session.query(User).filter(User.alive())
    if store is not None:
        query = query.filter(db.or_(User.store_id == store_id, User.id == store.merchant_id))
    else:
        query = query.filter(User.store_id == store_id)
    return query.order_by(User.name.asc()).all()


def ensure_platform_admin() -> tuple[User, bool]:
    """Idempotently seed the platform admin account. Returns (user, created)."""
    existing = get_user_by_email(PLATFORM_ADMIN_EMAIL)
    if existing:
        if existing.role != ROLE_PLATFORM_ADMIN or existing.status != "active":
            existing.role = ROLE_PLATFORM_ADMIN
            existing.status = "active"
            db.session.commit()
            logger.warning("Repaired role of platform admin account %s", existing.id)
        return existing, False

    user = User(
        name=PLATFORM_ADMIN_NAME,
        email=PLATFORM_ADMIN_EMAIL,
        password_hash=hash_password(PLATFORM_ADMIN_PASSWORD),
        role=ROLE_PLATFORM_ADMIN,
        status="active",
    )
    db.session.add(user)
    db.session.commit()
    logger.info("Platform admin account created")
    return user, True


def get_visible_user(user_id: int, acting_user: User) -> User:
    """
    Staff may look up themselves and the staff of stores they can reach.

    Anything else reads as a missing user.
    """
    user = get_user(user_id)
    if acting_user.role == ROLE_PLATFORM_ADMIN or user.id == acting_user.id:
        return user
    allowed = tenant_service.accessible_store_ids(acting_user) or set()
    if user.store_id is not None and user.store_id in allowed:
        return user
    raise NotFoundError(messages.USER_NOT_FOUND)
