"""
bikeyard/users/validators.py
----------------------------
Validation gate for user management payloads.
"""
from bikeyard.auth.decorators import ROLES
from bikeyard.utils.validation import check_email, check_text, unknown_fields

CREATE_FIELDS = ('email', 'password', 'role', 'displayName')
PROFILE_FIELDS = ('email', 'role', 'displayName')

# Never patched through the profile endpoint, even when sent
STRIPPED_FIELDS = ('id', 'createdAt', 'updatedAt', 'password')

MIN_PASSWORD_LENGTH = 6


def _check_role(value):
    if value not in ROLES:
        return 'Role must be either admin or worker'
    return None


def validate_new_user(data: dict) -> dict:
    missing = [f for f in CREATE_FIELDS if not data.get(f)]
    if missing:
        return {f: 'Email, password, role, and display name are required' for f in missing}

    errors = unknown_fields(data, CREATE_FIELDS)
    checks = {
        'email':       check_email(data['email']),
        'role':        _check_role(data['role']),
        'displayName': check_text(data['displayName'], 'Display name', 120),
    }
    password = data['password']
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        checks['password'] = f'Password must be at least {MIN_PASSWORD_LENGTH} characters'
    errors.update({name: msg for name, msg in checks.items() if msg})
    return errors


def clean_profile_patch(data: dict):
    """
    Returns (changes, errors). Stripped fields are dropped silently; the
    remaining keys must be profile fields with valid values.
    """
    changes = {k: v for k, v in data.items() if k not in STRIPPED_FIELDS}
    errors = unknown_fields(changes, PROFILE_FIELDS)

    if 'email' in changes:
        msg = check_email(changes['email'])
        if msg:
            errors['email'] = msg
        else:
            changes['email'] = changes['email'].strip().lower()
    if 'role' in changes:
        msg = _check_role(changes['role'])
        if msg:
            errors['role'] = msg
    if 'displayName' in changes:
        msg = check_text(changes['displayName'], 'Display name', 120)
        if msg:
            errors['displayName'] = msg
        else:
            changes['displayName'] = changes['displayName'].strip()
    return changes, errors
