"""
bikeyard/inventory/models.py
----------------------------
Bike documents live in the `bikes` collection:

    bikeName, year, registrationNumber,
    ownerPhone, ownerAadhar, ownerAddress,
    purchasePrice, sellingPrice, bikeImageUrl?, aadharImageUrl?,
    status ('available' | 'sold'), addedBy (uid), createdAt, updatedAt
"""
import enum

BIKES = 'bikes'


class BikeStatus(str, enum.Enum):
    available = 'available'
    sold      = 'sold'


# Fields a client may supply on create / patch on update
EDITABLE_FIELDS = (
    'bikeName',
    'year',
    'registrationNumber',
    'ownerPhone',
    'ownerAadhar',
    'ownerAddress',
    'purchasePrice',
    'sellingPrice',
    'bikeImageUrl',
    'aadharImageUrl',
)

# Server-managed fields: ignored when echoed back in an update payload
READ_ONLY_FIELDS = ('id', 'status', 'addedBy', 'createdAt', 'updatedAt')
