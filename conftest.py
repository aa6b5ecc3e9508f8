import pytest

from bikeyard import create_app, db
from bikeyard.services import get_services
from bikeyard.users.provisioning import provision_user

# ── Fixtures ──────────────────────────────────────────────────────

@pytest.fixture
def app(tmp_path):
    app = create_app('testing', STORAGE_ROOT=str(tmp_path / 'storage'))
    with app.app_context():
        db.create_all()
        get_services().blobs.create_bucket()

        provision_user(get_services(), 'admin@test.com', 'Admin123!', 'Admin User', 'admin')
        provision_user(get_services(), 'worker@test.com', 'Worker123!', 'Worker User', 'worker')

        yield app

        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def services(app):
    return get_services()


def login(client, email, password):
    return client.post('/api/auth/login', json={'email': email, 'password': password})


def bearer(token):
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def admin_headers(client):
    token = login(client, 'admin@test.com', 'Admin123!').get_json()['data']['token']
    return bearer(token)


@pytest.fixture
def worker_headers(client):
    token = login(client, 'worker@test.com', 'Worker123!').get_json()['data']['token']
    return bearer(token)


@pytest.fixture
def bike_payload():
    return {
        'bikeName': 'Royal Enfield Classic 350',
        'year': 2023,
        'registrationNumber': 'TN01AB1234',
        'ownerPhone': '+91 9876543210',
        'ownerAadhar': '123456789012',
        'ownerAddress': '12 Anna Salai, Chennai',
        'purchasePrice': 150000,
        'sellingPrice': 175000,
    }


@pytest.fixture
def sale_payload():
    return {
        'salePrice': 175000,
        'customerName': 'Ravi Kumar',
        'customerEmail': 'ravi@example.com',
        'customerPhone': '+91 9000000001',
        'customerAadhar': '210987654321',
        'customerAddress': '4 Gandhi Road, Madurai',
    }
