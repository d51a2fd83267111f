# Overview: Opaque bearer tokens for cashier desktops and the customer portal.

"""
Session tokens

Every authenticated IPC call carries a bearer token issued here. A session
belongs to exactly one principal: a staff user (merchant, cashier or
platform admin) or an approved portal customer.

- The client receives 64 hex characters; only their SHA-256 digest is stored.
- A session lives at most SESSION_ABSOLUTE_TIMEOUT and dies after
  SESSION_IDLE_TIMEOUT without traffic.
- The store a staff session acts for is fixed when it is opened.
"""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

from ..extensions import db
from ..models import Customer, SessionToken, User
from ..time_utils import as_naive_utc, utcnow


SESSION_ABSOLUTE_TIMEOUT = timedelta(hours=24)
SESSION_IDLE_TIMEOUT = timedelta(hours=2)
REVOKED_RETENTION = timedelta(days=30)


@dataclass
class SessionContext:
    """Who is calling. Exactly one of user / customer is set."""
    session: SessionToken
    user: User | None = None
    customer: Customer | None = None
    store_id: int | None = None

    @property
    def role(self) -> str:
        return self.user.role if self.user is not None else "customer"


def generate_token() -> str:
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _open(*, user_agent=None, ip_address=None, **owner) -> tuple[SessionToken, str]:
    token = generate_token()
    opened_at = utcnow()
    record = SessionToken(
        token_hash=hash_token(token),
        created_at=opened_at,
        last_used_at=opened_at,
        expires_at=opened_at + SESSION_ABSOLUTE_TIMEOUT,
        user_agent=user_agent,
        ip_address=ip_address,
        is_revoked=False,
        **owner,
    )
    db.session.add(record)
    db.session.commit()
    return record, token


def create_session(
    user_id: int,
    user_agent: str | None = None,
    ip_address: str | None = None
) -> tuple[SessionToken, str]:
    """
    Open a staff session and return (record, plaintext token).

    The session is pinned to the user's current store; moving a cashier to
    another store takes effect on their next login.
    """
    user = db.session.query(User).filter(User.id == user_id, User.alive()).first()
    if user is None:
        raise ValueError("User not found")
    return _open(user_id=user.id, store_id=user.store_id, user_agent=user_agent, ip_address=ip_address)


def create_customer_session(
    customer_id: int,
    user_agent: str | None = None,
    ip_address: str | None = None
) -> tuple[SessionToken, str]:
    customer = db.session.query(Customer).filter(Customer.id == customer_id, Customer.alive()).first()
    if customer is None:
        raise ValueError("Customer not found")
    return _open(customer_id=customer.id, user_agent=user_agent, ip_address=ip_address)


def _live_record(token: str | None) -> SessionToken | None:
    if not token:
        return None
    return db.session.query(SessionToken).filter_by(token_hash=hash_token(token), is_revoked=False).first()


def _mark_revoked(record: SessionToken, reason: str, when=None) -> None:
    record.is_revoked = True
    record.revoked_at = when or utcnow()
    record.revoked_reason = reason


def _principal(record: SessionToken) -> SessionContext | None:
    """Resolve the session owner, or None when the account can no longer sign in."""
    if record.user_id is not None:
        user = record.user
        if user is None or user.is_deleted or user.status != "active":
            return None
        return SessionContext(session=record, user=user, store_id=record.store_id)

    customer = record.customer
    if customer is None or customer.is_deleted or customer.registration_status != "approved":
        return None
    return SessionContext(session=record, customer=customer)


def validate_session(token: str) -> SessionContext | None:
    """
    Resolve a bearer token to its SessionContext and refresh its activity clock.

    Idle sessions and sessions whose owner was suspended, deleted or
    unapproved are revoked on the spot.
    """
    record = _live_record(token)
    if record is None:
        return None

    now = utcnow()
    if as_naive_utc(record.expires_at) < now:
        return None

    if now - as_naive_utc(record.last_used_at) > SESSION_IDLE_TIMEOUT:
        _mark_revoked(record, "Idle timeout", now)
        db.session.commit()
        return None

    context = _principal(record)
    if context is None:
        owner = "User" if record.user_id is not None else "Customer"
        _mark_revoked(record, f"{owner} account deactivated", now)
        db.session.commit()
        return None

    record.last_used_at = now
    db.session.commit()
    return context


def revoke_session(token: str, reason: str = "User logout") -> bool:
    """Log a token out. False when it was unknown or already revoked."""
    record = _live_record(token)
    if record is None:
        return False
    _mark_revoked(record, reason)
    db.session.commit()
    return True


def revoke_all_user_sessions(user_id: int, reason: str = "Revoke all sessions") -> int:
    """
    Revoke every open session of a staff user.

    Runs inside the caller's transaction (merchant suspension or deletion),
    so nothing is committed here.
    """
    now = utcnow()
    records = db.session.query(SessionToken).filter_by(user_id=user_id, is_revoked=False).all()
    for record in records:
        _mark_revoked(record, reason, now)
    return len(records)


def cleanup_expired_sessions() -> int:
    """Purge dead sessions (expired or revoked) opened more than REVOKED_RETENTION ago."""
    now = utcnow()
    purged = db.session.query(SessionToken).filter(
        db.or_(SessionToken.expires_at < now, SessionToken.is_revoked.is_(True)),
        SessionToken.created_at < now - REVOKED_RETENTION,
    ).delete(synchronize_session=False)
    db.session.commit()
    return purged
