"""
bikeyard/users/provisioning.py
------------------------------
Keeps identity accounts and `users` profile documents in step. Shared by
the user endpoints and the CLI seeding commands.
"""
from flask import current_app

from bikeyard.services.documents import SERVER_TIMESTAMP
from bikeyard.services.identity import IdentityError

USERS = 'users'


def provision_user(services, email, password, display_name, role):
    """
    Create the identity account, give it its role claim, then write the
    mirrored profile keyed by the provider-issued uid.
    Returns the stored profile snapshot.
    """
    record = services.identity.create_user(email=email, password=password,
                                           display_name=display_name)
    services.identity.set_custom_user_claims(record.uid, {'role': role})
    return services.store.set(USERS, record.uid, {
        'email':       record.email,
        'role':        role,
        'displayName': display_name,
        'createdAt':   SERVER_TIMESTAMP,
        'updatedAt':   SERVER_TIMESTAMP,
    })


def remove_user(services, uid) -> bool:
    """
    Delete the identity account (best effort) and then, always, the
    profile. Returns whether the identity account was removed.
    """
    removed = True
    try:
        services.identity.delete_user(uid)
    except IdentityError as exc:
        current_app.logger.warning(f"Failed to delete user {uid} from identity provider: {exc}")
        removed = False
    services.store.delete(USERS, uid)
    return removed
