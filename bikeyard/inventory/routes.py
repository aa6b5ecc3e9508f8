from flask import current_app, g, request

from bikeyard.inventory import inventory
from bikeyard.inventory.models import BIKES, BikeStatus
from bikeyard.inventory.validators import (
    validate_bike, validate_bike_patch, parse_bike,
)
from bikeyard.sales.models import SALES
from bikeyard.auth.decorators import login_required
from bikeyard.services import get_services
from bikeyard.services.documents import SERVER_TIMESTAMP
from bikeyard.utils.errors import BadRequest, Conflict, NotFound, ValidationFailed
from bikeyard.utils.responses import ok, handle_errors
from bikeyard.utils.validation import json_body


def _get_bike_or_404(store, bike_id):
    snap = store.get(BIKES, bike_id)
    if snap is None:
        raise NotFound('Bike not found')
    return snap


# ── CREATE ────────────────────────────────────────────────────────────────────

@inventory.route('', methods=['POST'])
@login_required
@handle_errors('Failed to add bike')
def create():
    """Add a bike to inventory. New bikes always start as available."""
    data = json_body()
    errors = validate_bike(data)
    if errors:
        raise ValidationFailed(errors)

    bike = parse_bike(data)
    bike.update({
        'status':    BikeStatus.available.value,
        'addedBy':   g.current_user.uid,
        'createdAt': SERVER_TIMESTAMP,
        'updatedAt': SERVER_TIMESTAMP,
    })
    snap = get_services().store.add(BIKES, bike)

    current_app.logger.info(f"Bike added: {bike['bikeName']} ({bike['registrationNumber']}) id={snap.id}")
    return ok(snap.to_dict(), message='Bike added successfully', status=201)


# ── LIST ──────────────────────────────────────────────────────────────────────

@inventory.route('', methods=['GET'])
@login_required
@handle_errors('Failed to fetch bikes')
def index():
    """List bikes, newest first, optionally filtered by ?status=."""
    status = request.args.get('status')
    where = []
    if status:
        if status not in BikeStatus.__members__:
            raise BadRequest('Status must be either available or sold')
        where.append(('status', '==', status))

    snaps = get_services().store.query(BIKES, where=where,
                                       order_by='createdAt', descending=True)
    return ok([s.to_dict() for s in snaps], message='Bikes fetched successfully')


# ── DETAIL ────────────────────────────────────────────────────────────────────

@inventory.route('/<bike_id>', methods=['GET'])
@login_required
@handle_errors('Failed to fetch bike')
def detail(bike_id):
    snap = _get_bike_or_404(get_services().store, bike_id)
    return ok(snap.to_dict())


# ── EDIT ──────────────────────────────────────────────────────────────────────

@inventory.route('/<bike_id>', methods=['PUT'])
@login_required
@handle_errors('Failed to update bike')
def update(bike_id):
    """Patch editable fields. Status only changes through the sale flow."""
    store = get_services().store
    current = _get_bike_or_404(store, bike_id)

    data = json_body()
    errors = validate_bike_patch(data)
    if errors:
        raise ValidationFailed(errors)

    changes = parse_bike(data)
    if current.get('status') == BikeStatus.sold.value \
            and 'purchasePrice' in changes \
            and changes['purchasePrice'] != current.get('purchasePrice'):
        raise Conflict('Purchase price cannot be changed after the bike is sold')

    changes['updatedAt'] = SERVER_TIMESTAMP
    snap = store.update(BIKES, bike_id, changes)

    current_app.logger.info(f"Bike updated: id={bike_id} fields={sorted(changes)}")
    return ok(snap.to_dict(), message='Bike updated successfully')


# ── DELETE ────────────────────────────────────────────────────────────────────

@inventory.route('/<bike_id>', methods=['DELETE'])
@login_required
@handle_errors('Failed to delete bike')
def delete(bike_id):
    """
    Delete a bike together with every sale that references it. The bike row
    is locked first, so a concurrent sale either lands before the read of
    its sales or fails with 404.
    """
    with get_services().store.transaction() as txn:
        if txn.get(BIKES, bike_id) is None:
            raise NotFound('Bike not found')

        sales = txn.query(SALES, where=[('bikeId', '==', bike_id)])
        txn.delete(BIKES, bike_id)
        for sale in sales:
            txn.delete(SALES, sale.id)

    current_app.logger.info(f"Bike deleted: id={bike_id} (+{len(sales)} sales)")
    return ok({'id': bike_id, 'deletedSales': len(sales)},
              message='Bike and associated sales data deleted successfully')
