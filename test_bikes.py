from datetime import datetime, timezone

from bikeyard.inventory.models import BIKES
from bikeyard.sales.models import SALES


def create_bike(client, headers, payload, **changes):
    resp = client.post('/api/bikes', json={**payload, **changes}, headers=headers)
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()['data']


# ── Create ────────────────────────────────────────────────────────

def test_create_bike_starts_available(client, worker_headers, bike_payload, services):
    bike = create_bike(client, worker_headers, bike_payload)

    assert bike['status'] == 'available'
    assert bike['purchasePrice'] == 150000
    assert bike['sellingPrice'] == 175000
    assert bike['year'] == 2023
    assert bike['createdAt'] and bike['updatedAt']

    worker = services.identity.get_user_by_email('worker@test.com')
    assert bike['addedBy'] == worker.uid
    assert len(services.store.query(BIKES)) == 1


def test_create_bike_rejects_client_status(client, worker_headers, bike_payload):
    resp = client.post('/api/bikes', json={**bike_payload, 'status': 'sold'},
                       headers=worker_headers)
    assert resp.status_code == 400
    fields = {e['field'] for e in resp.get_json()['data']}
    assert fields == {'status'}


def test_create_bike_validation(client, worker_headers, bike_payload):
    bad = {
        **bike_payload,
        'bikeName': '  ',
        'year': 1899,
        'ownerAadhar': '12345',
        'purchasePrice': -1,
        'sellingPrice': 'lots',
    }
    resp = client.post('/api/bikes', json=bad, headers=worker_headers)
    assert resp.status_code == 400

    body = resp.get_json()
    assert body['success'] is False
    assert body['error'] == 'Validation failed'
    fields = {e['field'] for e in body['data']}
    assert fields == {'bikeName', 'year', 'ownerAadhar', 'purchasePrice', 'sellingPrice'}


def test_create_bike_accepts_zero_prices(client, worker_headers, bike_payload):
    bike = create_bike(client, worker_headers, bike_payload, purchasePrice=0, sellingPrice=0)
    assert bike['purchasePrice'] == 0

    resp = client.post('/api/bikes', json={**bike_payload, 'purchasePrice': -1},
                       headers=worker_headers)
    assert resp.get_json()['data'] == [
        {'field': 'purchasePrice', 'message': 'Purchase price must be a non-negative number'}
    ]


def test_create_bike_year_upper_bound(client, worker_headers, bike_payload):
    next_year = datetime.now(timezone.utc).year + 1
    create_bike(client, worker_headers, bike_payload, year=next_year)

    resp = client.post('/api/bikes', json={**bike_payload, 'year': next_year + 1},
                       headers=worker_headers)
    assert resp.status_code == 400


def test_create_bike_rejects_unknown_fields(client, worker_headers, bike_payload):
    resp = client.post('/api/bikes', json={**bike_payload, 'colour': 'red'},
                       headers=worker_headers)
    assert resp.status_code == 400
    assert resp.get_json()['data'] == [{'field': 'colour', 'message': 'Unknown field'}]


def test_create_bike_requires_token(client, bike_payload):
    resp = client.post('/api/bikes', json=bike_payload)
    assert resp.status_code == 401
    assert resp.get_json() == {'success': False, 'error': 'Unauthorized: No token provided'}


def test_create_bike_requires_json_object(client, worker_headers):
    resp = client.post('/api/bikes', data='not json', headers=worker_headers)
    assert resp.status_code == 400
    assert resp.get_json()['success'] is False


# ── List / detail ─────────────────────────────────────────────────

def test_list_bikes_newest_first_and_status_filter(client, worker_headers, bike_payload,
                                                   sale_payload):
    first = create_bike(client, worker_headers, bike_payload, bikeName='First')
    second = create_bike(client, worker_headers, bike_payload, bikeName='Second')
    client.post(f"/api/sales/bike/{first['id']}/sold", json=sale_payload,
                headers=worker_headers)

    resp = client.get('/api/bikes', headers=worker_headers)
    assert resp.status_code == 200
    names = [b['bikeName'] for b in resp.get_json()['data']]
    assert names == ['Second', 'First']

    resp = client.get('/api/bikes?status=available', headers=worker_headers)
    assert [b['id'] for b in resp.get_json()['data']] == [second['id']]

    resp = client.get('/api/bikes?status=sold', headers=worker_headers)
    assert [b['id'] for b in resp.get_json()['data']] == [first['id']]


def test_list_bikes_rejects_unknown_status(client, worker_headers):
    resp = client.get('/api/bikes?status=scrapped', headers=worker_headers)
    assert resp.status_code == 400


def test_get_bike(client, worker_headers, bike_payload):
    bike = create_bike(client, worker_headers, bike_payload)

    resp = client.get(f"/api/bikes/{bike['id']}", headers=worker_headers)
    assert resp.status_code == 200
    assert resp.get_json()['data']['registrationNumber'] == 'TN01AB1234'

    resp = client.get('/api/bikes/missing', headers=worker_headers)
    assert resp.status_code == 404
    assert resp.get_json() == {'success': False, 'error': 'Bike not found'}


# ── Update ────────────────────────────────────────────────────────

def test_update_bike_patches_fields(client, worker_headers, bike_payload):
    bike = create_bike(client, worker_headers, bike_payload)

    resp = client.put(f"/api/bikes/{bike['id']}",
                      json={'sellingPrice': '180000', 'ownerPhone': '9999999999'},
                      headers=worker_headers)
    assert resp.status_code == 200
    updated = resp.get_json()['data']
    assert updated['sellingPrice'] == 180000
    assert updated['ownerPhone'] == '9999999999'
    assert updated['bikeName'] == bike['bikeName']


def test_update_bike_never_changes_status(client, worker_headers, bike_payload):
    bike = create_bike(client, worker_headers, bike_payload)

    resp = client.put(f"/api/bikes/{bike['id']}",
                      json={**bike, 'status': 'sold', 'bikeName': 'Renamed'},
                      headers=worker_headers)
    assert resp.status_code == 200
    updated = resp.get_json()['data']
    assert updated['status'] == 'available'
    assert updated['bikeName'] == 'Renamed'


def test_update_bike_validation_and_unknown(client, worker_headers, bike_payload):
    bike = create_bike(client, worker_headers, bike_payload)

    resp = client.put(f"/api/bikes/{bike['id']}", json={'year': 1700},
                      headers=worker_headers)
    assert resp.status_code == 400

    resp = client.put(f"/api/bikes/{bike['id']}", json={'make': 'Honda'},
                      headers=worker_headers)
    assert resp.status_code == 400

    resp = client.put('/api/bikes/missing', json={'bikeName': 'x'}, headers=worker_headers)
    assert resp.status_code == 404


def test_sold_bike_purchase_price_is_frozen(client, worker_headers, bike_payload, sale_payload):
    bike = create_bike(client, worker_headers, bike_payload)
    client.post(f"/api/sales/bike/{bike['id']}/sold", json=sale_payload,
                headers=worker_headers)

    resp = client.put(f"/api/bikes/{bike['id']}", json={'purchasePrice': 1},
                      headers=worker_headers)
    assert resp.status_code == 409

    # Same value is not a change
    resp = client.put(f"/api/bikes/{bike['id']}", json={'purchasePrice': 150000},
                      headers=worker_headers)
    assert resp.status_code == 200


# ── Delete ────────────────────────────────────────────────────────

def test_delete_bike_cascades_to_sales(client, worker_headers, bike_payload, sale_payload,
                                       services):
    bike = create_bike(client, worker_headers, bike_payload)
    other = create_bike(client, worker_headers, bike_payload, bikeName='Other')
    client.post(f"/api/sales/bike/{bike['id']}/sold", json=sale_payload,
                headers=worker_headers)
    client.post(f"/api/sales/bike/{other['id']}/sold", json=sale_payload,
                headers=worker_headers)
    # A stray duplicate sale record must go too
    services.store.add(SALES, {'bikeId': bike['id'], 'salePrice': 1})

    resp = client.delete(f"/api/bikes/{bike['id']}", headers=worker_headers)
    assert resp.status_code == 200
    assert resp.get_json()['data']['deletedSales'] == 2

    assert services.store.get(BIKES, bike['id']) is None
    assert services.store.query(SALES, where=[('bikeId', '==', bike['id'])]) == []
    assert len(services.store.query(SALES, where=[('bikeId', '==', other['id'])])) == 1


def test_delete_missing_bike(client, worker_headers):
    resp = client.delete('/api/bikes/missing', headers=worker_headers)
    assert resp.status_code == 404


def test_failed_delete_leaves_bike_and_sales(client, worker_headers, bike_payload,
                                             sale_payload, services, monkeypatch):
    import bikeyard.services.documents as documents

    bike = create_bike(client, worker_headers, bike_payload)
    client.post(f"/api/sales/bike/{bike['id']}/sold", json=sale_payload,
                headers=worker_headers)

    original = documents._StagedWrites._apply

    def apply_then_fail(self):
        original(self)
        raise RuntimeError('connection lost')

    monkeypatch.setattr(documents._StagedWrites, '_apply', apply_then_fail)
    resp = client.delete(f"/api/bikes/{bike['id']}", headers=worker_headers)
    assert resp.status_code == 500
    assert resp.get_json()['error'] == 'Failed to delete bike'

    assert services.store.get(BIKES, bike['id']) is not None
    assert len(services.store.query(SALES, where=[('bikeId', '==', bike['id'])])) == 1
