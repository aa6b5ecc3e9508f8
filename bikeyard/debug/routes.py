from dataclasses import asdict

from flask import current_app, g

from bikeyard.debug import debug
from bikeyard.auth.decorators import ROLES, admin_required, login_required
from bikeyard.services import get_services
from bikeyard.services.identity import UserNotFound
from bikeyard.utils.errors import NotFound, ValidationFailed
from bikeyard.utils.responses import ok, handle_errors
from bikeyard.utils.validation import json_body


@debug.route('/user-role', methods=['GET'])
@login_required
@handle_errors('Failed to fetch user role')
def user_role():
    """The caller's stored custom claims next to what the token resolved to."""
    user = g.current_user
    record = get_services().identity.get_user(user.uid)
    return ok({
        'uid':          user.uid,
        'email':        user.email,
        'customClaims': record.custom_claims,
        'tokenClaims':  asdict(user),
    })


@debug.route('/set-role', methods=['POST'])
@admin_required
@handle_errors('Failed to set user role')
def set_role():
    """Set the role claim of the account registered under `email`."""
    data = json_body()
    email = data.get('email')
    role = data.get('role')

    if not email or not role:
        raise ValidationFailed({'email': 'Email and role are required'})
    if role not in ROLES:
        raise ValidationFailed({'role': 'Role must be either admin or worker'})

    identity = get_services().identity
    try:
        record = identity.get_user_by_email(email)
    except UserNotFound:
        raise NotFound(f'No user registered with email {email}') from None

    identity.set_custom_user_claims(record.uid, {**record.custom_claims, 'role': role})
    current_app.logger.warning(f"Role {role} set for {record.email} by {g.current_user.email}")
    return ok(message=f'Role {role} set for user {record.email}')
