from flask import current_app, g

from bikeyard.users import users
from bikeyard.users.provisioning import USERS, provision_user, remove_user
from bikeyard.users.validators import validate_new_user, clean_profile_patch
from bikeyard.auth.decorators import admin_required
from bikeyard.services import get_services
from bikeyard.services.documents import SERVER_TIMESTAMP
from bikeyard.services.identity import EmailAlreadyExists
from bikeyard.utils.errors import Conflict, NotFound, ValidationFailed
from bikeyard.utils.responses import ok, handle_errors
from bikeyard.utils.validation import json_body


def _get_profile_or_404(store, uid):
    snap = store.get(USERS, uid)
    if snap is None:
        raise NotFound('User not found')
    return snap


@users.route('', methods=['GET'])
@admin_required
@handle_errors('Failed to fetch users')
def index():
    snaps = get_services().store.query(USERS)
    return ok([s.to_dict() for s in snaps])


@users.route('/<uid>', methods=['GET'])
@admin_required
@handle_errors('Failed to fetch user')
def detail(uid):
    return ok(_get_profile_or_404(get_services().store, uid).to_dict())


@users.route('', methods=['POST'])
@admin_required
@handle_errors('Failed to create user')
def create():
    data = json_body()
    errors = validate_new_user(data)
    if errors:
        raise ValidationFailed(errors)

    try:
        profile = provision_user(
            get_services(),
            email=data['email'].strip(),
            password=data['password'],
            display_name=data['displayName'].strip(),
            role=data['role'],
        )
    except EmailAlreadyExists as exc:
        raise Conflict(str(exc)) from None

    current_app.logger.info(
        f"User created by {g.current_user.email}: {profile.get('email')} ({profile.get('role')})"
    )
    return ok(profile.to_dict(), message='User created successfully', status=201)


@users.route('/<uid>', methods=['PUT'])
@admin_required
@handle_errors('Failed to update user')
def update(uid):
    """Patch the profile document only; identity account is untouched."""
    store = get_services().store
    _get_profile_or_404(store, uid)

    changes, errors = clean_profile_patch(json_body())
    if errors:
        raise ValidationFailed(errors)

    changes['updatedAt'] = SERVER_TIMESTAMP
    snap = store.update(USERS, uid, changes)
    return ok(snap.to_dict(), message='User updated successfully')


@users.route('/<uid>', methods=['DELETE'])
@admin_required
@handle_errors('Failed to delete user')
def delete(uid):
    services = get_services()
    _get_profile_or_404(services.store, uid)

    remove_user(services, uid)
    current_app.logger.info(f"User deleted by {g.current_user.email}: uid={uid}")
    return ok(message='User deleted successfully')
