"""
bikeyard/services/__init__.py
-----------------------------
Client handles for the external collaborators (document store, identity
gateway, blob store). Built once by `init_services(app)` and shared
read-only by every request.
"""
from dataclasses import dataclass

from flask import current_app

from bikeyard.services.blobs import BlobStore
from bikeyard.services.documents import DocumentStore
from bikeyard.services.identity import IdentityProvider

EXTENSION_KEY = 'bikeyard'


@dataclass(frozen=True)
class Services:
    store: DocumentStore
    identity: IdentityProvider
    blobs: BlobStore


def build_services(app) -> Services:
    """Construct the default client handles from app.config."""
    return Services(
        store=DocumentStore(),
        identity=IdentityProvider(
            secret_key=app.config['SECRET_KEY'],
            token_max_age=app.config['ID_TOKEN_MAX_AGE'],
        ),
        blobs=BlobStore(
            root=app.config['STORAGE_ROOT'],
            bucket_name=app.config['STORAGE_BUCKET'],
            public_base_url=app.config['STORAGE_PUBLIC_URL'],
        ),
    )


def init_services(app, services: Services = None) -> Services:
    services = services or build_services(app)
    app.extensions[EXTENSION_KEY] = services
    return services


def get_services() -> Services:
    return current_app.extensions[EXTENSION_KEY]
