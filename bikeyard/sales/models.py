"""
bikeyard/sales/models.py
------------------------
Sale documents live in the `sales` collection. A sale snapshots the bike as
it was when sold; it is never updated afterwards.

    bikeId, bikeName, bikeYear, purchasePrice, salePrice, profit,
    customerName, customerEmail, customerPhone, customerAadhar,
    customerAddress, soldBy (uid), saleDate, createdAt
"""
SALES = 'sales'

SALE_FIELDS = (
    'salePrice',
    'customerName',
    'customerEmail',
    'customerPhone',
    'customerAadhar',
    'customerAddress',
)
