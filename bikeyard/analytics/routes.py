"""
bikeyard/analytics/routes.py
----------------------------
KPI summary and monthly rollup endpoints.
"""
from datetime import datetime, timezone

from flask import request

from bikeyard.analytics import analytics
from bikeyard.analytics.aggregation import compute_kpis, monthly_rollup
from bikeyard.auth.decorators import admin_required
from bikeyard.inventory.models import BIKES
from bikeyard.sales.models import SALES
from bikeyard.services import get_services
from bikeyard.utils.errors import ValidationFailed
from bikeyard.utils.responses import ok, handle_errors
from bikeyard.utils.validation import to_int


# ── Helpers ───────────────────────────────────────────────────────

def _query_period():
    """Parse ?year= and ?month= (0-11). Year defaults to the current UTC year."""
    errors = {}
    year_raw = request.args.get('year')
    month_raw = request.args.get('month')

    year = datetime.now(timezone.utc).year
    if year_raw:
        year = to_int(year_raw)
        if year is None or not (1900 <= year <= 9999):
            errors['year'] = 'Year must be a valid calendar year'

    month = None
    if month_raw:
        month = to_int(month_raw)
        if month is None or not (0 <= month <= 11):
            errors['month'] = 'Month must be between 0 and 11'

    if errors:
        raise ValidationFailed(errors)
    return year, month


def _snapshot():
    """Every sale and bike document, as plain dicts."""
    store = get_services().store
    sales = [s.data for s in store.query(SALES)]
    bikes = [b.data for b in store.query(BIKES)]
    return sales, bikes


# ── Endpoints ─────────────────────────────────────────────────────

@analytics.route('/kpi')
@admin_required
@handle_errors('Failed to fetch KPI data')
def kpi():
    year, month = _query_period()
    sales, bikes = _snapshot()
    return ok(compute_kpis(sales, bikes, year, month))


@analytics.route('/monthly-sales')
@admin_required
@handle_errors('Failed to fetch monthly sales data')
def monthly_sales():
    year, _ = _query_period()
    sales, bikes = _snapshot()
    return ok(monthly_rollup(sales, bikes, year))
