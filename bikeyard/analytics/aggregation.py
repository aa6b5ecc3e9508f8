"""
bikeyard/analytics/aggregation.py
---------------------------------
Pure reducers over already-fetched bike and sale documents (plain dicts).

All calendar arithmetic is done in UTC: a sale made at 23:30 on 31 Jan in
UTC+5:30 belongs to January UTC only if its UTC timestamp does. Months are
0-based (0 = January) on the API surface, matching the `month` query
parameter.

Sales are bucketed by `saleDate`, bikes (purchases) by `createdAt`. These
are independent timelines merged into shared buckets, not a matched
purchase -> sale chain.
"""
from datetime import datetime, timezone
from decimal import Decimal

MONTH_ABBREVIATIONS = (
    'Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun',
    'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec',
)


def _utc(value):
    """The timestamp as an aware UTC datetime, or None if it isn't one."""
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _in_window(value, year, month=None) -> bool:
    ts = _utc(value)
    if ts is None:
        return False
    return ts.year == year and (month is None or ts.month - 1 == month)


def _money(value) -> Decimal:
    if value is None or isinstance(value, bool):
        return Decimal('0')
    return Decimal(str(value))


def _total(docs, field) -> float:
    return float(sum((_money(d.get(field)) for d in docs), Decimal('0')))


def compute_kpis(sales, bikes, year: int, month: int = None) -> dict:
    """
    KPI summary for `year` (and `month`, 0-11, when given).

    Revenue, profit and bikes sold come from sales in the window; expenses
    are the purchase prices of bikes created in the window.
    `totalBikesAvailable` counts every available bike regardless of date.
    """
    window_sales = [s for s in sales if _in_window(s.get('saleDate'), year, month)]
    window_bikes = [b for b in bikes if _in_window(b.get('createdAt'), year, month)]

    return {
        'totalProfit':         _total(window_sales, 'profit'),
        'totalExpenses':       _total(window_bikes, 'purchasePrice'),
        'totalRevenue':        _total(window_sales, 'salePrice'),
        'totalBikesSold':      len(window_sales),
        'totalBikesAvailable': sum(1 for b in bikes if b.get('status') == 'available'),
    }


def monthly_rollup(sales, bikes, year: int) -> list:
    """Twelve buckets, January first, of sales / purchases / profit for `year`."""
    buckets = [
        {'sales': Decimal('0'), 'purchases': Decimal('0'), 'profit': Decimal('0')}
        for _ in MONTH_ABBREVIATIONS
    ]

    for sale in sales:
        ts = _utc(sale.get('saleDate'))
        if ts is not None and ts.year == year:
            bucket = buckets[ts.month - 1]
            bucket['sales'] += _money(sale.get('salePrice'))
            bucket['profit'] += _money(sale.get('profit'))

    for bike in bikes:
        ts = _utc(bike.get('createdAt'))
        if ts is not None and ts.year == year:
            buckets[ts.month - 1]['purchases'] += _money(bike.get('purchasePrice'))

    return [
        {
            'month':     name,
            'sales':     float(bucket['sales']),
            'purchases': float(bucket['purchases']),
            'profit':    float(bucket['profit']),
        }
        for name, bucket in zip(MONTH_ABBREVIATIONS, buckets)
    ]
