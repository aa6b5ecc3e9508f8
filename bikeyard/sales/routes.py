from flask import current_app, g

from bikeyard.sales import sales
from bikeyard.sales.ledger import clear_all_sales, mark_as_sold
from bikeyard.sales.models import SALES
from bikeyard.sales.validators import validate_sale, parse_sale
from bikeyard.auth.decorators import admin_required, login_required
from bikeyard.services import get_services
from bikeyard.utils.errors import NotFound, ValidationFailed
from bikeyard.utils.responses import ok, handle_errors
from bikeyard.utils.validation import json_body


# ── MARK AS SOLD ──────────────────────────────────────────────────────────────

@sales.route('/bike/<bike_id>/sold', methods=['POST'])
@login_required
@handle_errors('Failed to mark bike as sold')
def mark_sold(bike_id):
    data = json_body()
    errors = validate_sale(data)
    if errors:
        raise ValidationFailed(errors)

    sale = mark_as_sold(get_services().store, bike_id, parse_sale(data),
                        sold_by=g.current_user.uid)

    current_app.logger.info(
        f"Bike sold: bike={bike_id} sale={sale.id} price={sale.get('salePrice')} "
        f"profit={sale.get('profit')} by={g.current_user.email}"
    )
    return ok(sale.to_dict(), message='Bike marked as sold successfully', status=201)


# ── LIST / DETAIL ─────────────────────────────────────────────────────────────

@sales.route('', methods=['GET'])
@login_required
@handle_errors('Failed to fetch sales')
def index():
    """All sales, most recent first."""
    snaps = get_services().store.query(SALES, order_by='saleDate', descending=True)
    return ok([s.to_dict() for s in snaps])


@sales.route('/bike/<bike_id>', methods=['GET'])
@login_required
@handle_errors('Failed to fetch sale')
def by_bike(bike_id):
    snaps = get_services().store.query(SALES, where=[('bikeId', '==', bike_id)], limit=1)
    if not snaps:
        raise NotFound('Sale not found for this bike')
    return ok(snaps[0].to_dict())


@sales.route('/<sale_id>', methods=['GET'])
@login_required
@handle_errors('Failed to fetch sale')
def detail(sale_id):
    snap = get_services().store.get(SALES, sale_id)
    if snap is None:
        raise NotFound('Sale not found')
    return ok(snap.to_dict())


# ── RESET ─────────────────────────────────────────────────────────────────────

@sales.route('/clear-all', methods=['DELETE'])
@admin_required
@handle_errors('Failed to clear sales data')
def clear_all():
    """Delete every sale and put every sold bike back on the market."""
    deleted, reset = clear_all_sales(get_services().store)
    current_app.logger.warning(
        f"Sales data cleared by {g.current_user.email}: {deleted} sales, {reset} bikes reset"
    )
    return ok(
        {'salesDeleted': deleted, 'bikesReset': reset},
        message=f'Successfully cleared {deleted} sales records and reset '
                f'{reset} bikes to available status',
    )
