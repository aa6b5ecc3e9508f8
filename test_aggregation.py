from datetime import datetime, timedelta, timezone

from bikeyard.analytics.aggregation import compute_kpis, monthly_rollup

UTC = timezone.utc
IST = timezone(timedelta(hours=5, minutes=30))


def sale(when, price, profit):
    return {'saleDate': when, 'salePrice': price, 'profit': profit}


def bike(when, price, status='available'):
    return {'createdAt': when, 'purchasePrice': price, 'status': status}


SALES = [
    sale(datetime(2024, 1, 15, tzinfo=UTC), 175000, 25000),
    sale(datetime(2024, 1, 20, tzinfo=UTC), 90000, 10000),
    sale(datetime(2024, 3, 2, tzinfo=UTC), 60000, -5000),
    sale(datetime(2023, 12, 31, 23, 0, tzinfo=UTC), 50000, 5000),
    {'salePrice': 999, 'profit': 999},  # no timestamp: never counted
]

BIKES = [
    bike(datetime(2024, 1, 3, tzinfo=UTC), 150000, 'sold'),
    bike(datetime(2024, 1, 9, tzinfo=UTC), 80000, 'sold'),
    bike(datetime(2024, 2, 1, tzinfo=UTC), 65000, 'sold'),
    bike(datetime(2024, 7, 4, tzinfo=UTC), 40000),
    bike(datetime(2022, 5, 5, tzinfo=UTC), 30000),
]


# ── KPI ───────────────────────────────────────────────────────────

def test_kpis_for_year():
    kpis = compute_kpis(SALES, BIKES, 2024)
    assert kpis == {
        'totalProfit': 30000,
        'totalExpenses': 335000,
        'totalRevenue': 325000,
        'totalBikesSold': 3,
        'totalBikesAvailable': 2,
    }


def test_kpis_for_month_is_zero_based():
    kpis = compute_kpis(SALES, BIKES, 2024, month=0)
    assert kpis['totalRevenue'] == 265000
    assert kpis['totalProfit'] == 35000
    assert kpis['totalExpenses'] == 230000
    assert kpis['totalBikesSold'] == 2

    february = compute_kpis(SALES, BIKES, 2024, month=1)
    assert february['totalBikesSold'] == 0
    assert february['totalExpenses'] == 65000


def test_available_count_ignores_date_window():
    counts = {
        compute_kpis(SALES, BIKES, year, month)['totalBikesAvailable']
        for year in (1999, 2022, 2024)
        for month in (None, 0, 6, 11)
    }
    assert counts == {2}


def test_kpis_empty_inputs():
    assert compute_kpis([], [], 2024) == {
        'totalProfit': 0,
        'totalExpenses': 0,
        'totalRevenue': 0,
        'totalBikesSold': 0,
        'totalBikesAvailable': 0,
    }


def test_dates_are_bucketed_in_utc():
    # 1 Feb 03:00 in India is still 31 Jan in UTC
    late = sale(datetime(2024, 2, 1, 3, 0, tzinfo=IST), 100, 10)
    assert compute_kpis([late], [], 2024, month=0)['totalBikesSold'] == 1
    assert compute_kpis([late], [], 2024, month=1)['totalBikesSold'] == 0

    naive = sale(datetime(2024, 6, 30, 23, 59), 100, 10)
    assert compute_kpis([naive], [], 2024, month=5)['totalBikesSold'] == 1


# ── Monthly rollup ────────────────────────────────────────────────

def test_monthly_rollup_has_twelve_buckets():
    rollup = monthly_rollup(SALES, BIKES, 2024)

    assert len(rollup) == 12
    assert [b['month'] for b in rollup][:3] == ['Jan', 'Feb', 'Mar']
    assert rollup[-1]['month'] == 'Dec'

    assert rollup[0] == {'month': 'Jan', 'sales': 265000, 'purchases': 230000, 'profit': 35000}
    assert rollup[1] == {'month': 'Feb', 'sales': 0, 'purchases': 65000, 'profit': 0}
    assert rollup[2] == {'month': 'Mar', 'sales': 60000, 'purchases': 0, 'profit': -5000}
    assert rollup[6]['purchases'] == 40000


def test_monthly_sales_sum_matches_kpi_revenue():
    for year in (2022, 2023, 2024, 2025):
        rollup = monthly_rollup(SALES, BIKES, year)
        assert len(rollup) == 12
        assert all(b['sales'] >= 0 and b['purchases'] >= 0 for b in rollup)
        assert sum(b['sales'] for b in rollup) == compute_kpis(SALES, BIKES, year)['totalRevenue']


def test_monthly_rollup_for_empty_year():
    rollup = monthly_rollup(SALES, BIKES, 2030)
    assert all(b['sales'] == b['purchases'] == b['profit'] == 0 for b in rollup)
