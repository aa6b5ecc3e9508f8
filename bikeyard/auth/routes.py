from flask import current_app

from bikeyard.auth import auth
from bikeyard.auth.decorators import ROLE_WORKER
from bikeyard.services import get_services
from bikeyard.services.identity import InvalidCredentials
from bikeyard.utils.errors import Unauthorized, ValidationFailed
from bikeyard.utils.responses import ok, handle_errors
from bikeyard.utils.validation import json_body


@auth.route('/login', methods=['POST'])
@handle_errors('Failed to sign in')
def login():
    """Exchange email + password for a bearer ID token."""
    data = json_body()
    email = data.get('email')
    password = data.get('password')

    if not isinstance(email, str) or not email.strip() \
            or not isinstance(password, str) or not password:
        raise ValidationFailed({'credentials': 'Email and password are required'})

    identity = get_services().identity
    try:
        token = identity.sign_in(email, password)
    except InvalidCredentials:
        # Same message for unknown email and wrong password
        current_app.logger.warning(f"Failed login attempt for email: {email}")
        raise Unauthorized('Invalid email or password') from None

    record = identity.get_user_by_email(email)
    current_app.logger.info(f"User {record.email} signed in")
    return ok({
        'token': token,
        'expiresIn': identity.token_max_age,
        'user': {
            'uid': record.uid,
            'email': record.email,
            'displayName': record.display_name,
            'role': record.custom_claims.get('role', ROLE_WORKER),
        },
    }, message='Signed in successfully')
