"""
bikeyard/auth/decorators.py
---------------------------
Reusable route-protection decorators for bearer-token requests.
Usage:
    from bikeyard.auth.decorators import login_required, admin_required

    @inventory.route('/', methods=['POST'])
    @login_required
    def create_bike():
        ...

    @analytics.route('/kpi')
    @admin_required
    def kpi():
        ...

The verified caller is available as `g.current_user` (uid, email, role).
"""
from dataclasses import dataclass
from functools import wraps

from flask import current_app, g, request

from bikeyard.services import get_services
from bikeyard.services.identity import IdentityError
from bikeyard.utils.errors import Forbidden, Unauthorized

ROLE_ADMIN = 'admin'
ROLE_WORKER = 'worker'
ROLES = (ROLE_ADMIN, ROLE_WORKER)


@dataclass(frozen=True)
class CurrentUser:
    uid: str
    email: str
    role: str
    claims: dict


def _bearer_token():
    header = request.headers.get('Authorization', '')
    if not header.startswith('Bearer '):
        return None
    return header[len('Bearer '):].strip() or None


def authenticate() -> CurrentUser:
    """
    Verify the bearer token and load the caller's role claim.
    Accounts without a role claim are treated as workers.
    """
    token = _bearer_token()
    if token is None:
        raise Unauthorized('Unauthorized: No token provided')

    identity = get_services().identity
    try:
        claims = identity.verify_id_token(token)
        record = identity.get_user(claims['uid'])
    except IdentityError as exc:
        current_app.logger.warning(f"Rejected bearer token: {exc}")
        raise Unauthorized('Unauthorized: Invalid token') from None
    if record.disabled:
        raise Unauthorized('Unauthorized: Account disabled')

    role = record.custom_claims.get('role')
    if role not in ROLES:
        role = ROLE_WORKER

    user = CurrentUser(uid=record.uid, email=record.email, role=role, claims=claims)
    g.current_user = user
    return user


def login_required(f):
    """Reject the request with 401 unless it carries a valid bearer token."""
    @wraps(f)
    def decorated(*args, **kwargs):
        authenticate()
        return f(*args, **kwargs)
    return decorated


def role_required(*roles):
    """
    Allow access only to callers whose role is in `roles`.
    Implies login_required: unauthenticated callers get 401, authenticated
    callers with another role get 403.
    """
    def decorator(f):
        @wraps(f)
        def decorated(*args, **kwargs):
            user = authenticate()
            if user.role not in roles:
                current_app.logger.warning(
                    f"Forbidden: {user.email} ({user.role}) -> {request.path}"
                )
                raise Forbidden()
            return f(*args, **kwargs)
        return decorated
    return decorator


admin_required = role_required(ROLE_ADMIN)
