# Overview: Request authentication and role decorators for IPC channels and web routes.

from functools import wraps
from flask import request, jsonify, g

from . import messages
from .models.auth import ROLE_MERCHANT, ROLE_PLATFORM_ADMIN
from .services import session_service
from .services.errors import AuthError, ForbiddenError

# Access levels a channel or route may declare
ACCESS_PUBLIC = "public"
ACCESS_CUSTOMER = "customer"
ACCESS_STAFF = "staff"
ACCESS_MERCHANT = "merchant"
ACCESS_PLATFORM_ADMIN = "platform_admin"

ACCESS_LEVELS = (ACCESS_PUBLIC, ACCESS_CUSTOMER, ACCESS_STAFF, ACCESS_MERCHANT, ACCESS_PLATFORM_ADMIN)

_ROLES_FOR_ACCESS = {
    ACCESS_MERCHANT: {ROLE_MERCHANT, ROLE_PLATFORM_ADMIN},
    ACCESS_PLATFORM_ADMIN: {ROLE_PLATFORM_ADMIN},
}


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def authenticate_request():
    """
    Resolve the Bearer token into a session context and establish it on g.

    Sets:
    - g.principal: the SessionContext
    - g.current_user: staff User (None for customers)
    - g.current_customer: portal Customer (None for staff)
    - g.store_id: the session's default store

    Raises AuthError when the header is missing or the session is no longer valid.
    """
    token = _bearer_token()
    if token is None:
        raise AuthError(messages.AUTH_REQUIRED)

    context = session_service.validate_session(token)
    if context is None:
        raise AuthError(messages.SESSION_INVALID)

    g.principal = context
    g.current_user = context.user
    g.current_customer = context.customer
    g.store_id = context.store_id
    g.session_token = token
    return context


def authorize(access: str) -> None:
    """
    Enforce one access level for the current request.

    public passes through; every other level needs a valid session of the
    right kind. Raises AuthError (401) or ForbiddenError (403).
    """
    if access == ACCESS_PUBLIC:
        return

    context = authenticate_request()

    if access == ACCESS_CUSTOMER:
        if context.customer is None:
            raise ForbiddenError(messages.FORBIDDEN)
        return

    if context.user is None:
        raise ForbiddenError(messages.FORBIDDEN)

    allowed_roles = _ROLES_FOR_ACCESS.get(access)
    if allowed_roles is not None and context.user.role not in allowed_roles:
        raise ForbiddenError(messages.FORBIDDEN)


def require_customer_match(customer_id) -> int:
    """
    The payload's customerId must be the session's own customer.

    Customers can never read or act on another customer's data.
    """
    customer = getattr(g, "current_customer", None)
    if customer is None:
        raise ForbiddenError(messages.FORBIDDEN)
    try:
        customer_id = int(customer_id)
    except (TypeError, ValueError):
        raise ForbiddenError(messages.FORBIDDEN)
    if customer_id != customer.id:
        raise ForbiddenError(messages.FORBIDDEN)
    return customer_id


def _guard(access: str):
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            try:
                authorize(access)
            except (AuthError, ForbiddenError) as e:
                return jsonify({"error": e.message}), e.status_code
            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_auth(f):
    """Any valid session, staff or customer."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            authenticate_request()
        except AuthError as e:
            return jsonify({"error": e.message}), e.status_code
        return f(*args, **kwargs)

    return decorated_function


require_staff = _guard(ACCESS_STAFF)
require_customer = _guard(ACCESS_CUSTOMER)


def require_role(access: str):
    """
    Require a staff access level: "merchant" (merchant or platform admin) or
    "platform_admin".
    """
    if access not in _ROLES_FOR_ACCESS:
        raise ValueError(f"Unknown access level: {access}")
    return _guard(access)
