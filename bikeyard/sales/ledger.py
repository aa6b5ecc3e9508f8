"""
bikeyard/sales/ledger.py
------------------------
The two multi-document writes of the sales domain.

mark_as_sold
    Read the bike, refuse if it is already sold, write the sale snapshot and
    flip the bike to `sold`, all inside one store transaction. On PostgreSQL
    the bike row is locked for the read (SELECT ... FOR UPDATE), so of two
    concurrent sales of the same bike one commits and the other sees `sold`
    and gets a Conflict. SQLite ignores FOR UPDATE and starts its write
    transaction lazily, so on the SQLite development default two truly
    concurrent sales of one bike can both commit.

clear_all_sales
    Delete every sale and revert every sold bike to `available` in a single
    batch.
"""
from decimal import Decimal

from bikeyard.inventory.models import BIKES, BikeStatus
from bikeyard.sales.models import SALES
from bikeyard.services.documents import SERVER_TIMESTAMP
from bikeyard.utils.errors import Conflict, NotFound


def compute_profit(sale_price, purchase_price) -> float:
    """salePrice - purchasePrice, without binary float drift."""
    return float(Decimal(str(sale_price)) - Decimal(str(purchase_price or 0)))


def mark_as_sold(store, bike_id: str, sale: dict, sold_by: str):
    """
    Record the sale of `bike_id`. `sale` is the parsed customer/price payload.
    Returns the stored sale snapshot.
    """
    with store.transaction() as txn:
        bike = txn.get(BIKES, bike_id)
        if bike is None:
            raise NotFound('Bike not found')
        if bike.get('status') == BikeStatus.sold.value:
            raise Conflict('Bike is already sold')

        purchase_price = bike.get('purchasePrice', 0)
        record = {
            'bikeId':        bike_id,
            'bikeName':      bike.get('bikeName'),
            'bikeYear':      bike.get('year'),
            'purchasePrice': purchase_price,
            **sale,
            'profit':        compute_profit(sale['salePrice'], purchase_price),
            'soldBy':        sold_by,
            'saleDate':      SERVER_TIMESTAMP,
            'createdAt':     SERVER_TIMESTAMP,
        }
        sale_id = txn.create(SALES, record)
        txn.update(BIKES, bike_id, {
            'status':    BikeStatus.sold.value,
            'updatedAt': SERVER_TIMESTAMP,
        })

    return store.get(SALES, sale_id)


def clear_all_sales(store):
    """Returns (sales_deleted, bikes_reset)."""
    sales = store.query(SALES)
    sold_bikes = store.query(BIKES, where=[('status', '==', BikeStatus.sold.value)])

    batch = store.batch()
    for sale in sales:
        batch.delete(SALES, sale.id)
    for bike in sold_bikes:
        batch.update(BIKES, bike.id, {
            'status':    BikeStatus.available.value,
            'updatedAt': SERVER_TIMESTAMP,
        })
    batch.commit()

    return len(sales), len(sold_bikes)
