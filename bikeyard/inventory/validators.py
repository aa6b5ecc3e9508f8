"""
bikeyard/inventory/validators.py
--------------------------------
Pure-Python validation for bike payloads.
Returns a dict of field -> error_message.
An empty dict means all fields are valid.
"""
from datetime import datetime, timezone

from bikeyard.inventory.models import EDITABLE_FIELDS, READ_ONLY_FIELDS
from bikeyard.utils.validation import (
    amount, check_aadhar, check_amount, check_text, to_int, unknown_fields,
)

MIN_YEAR = 1900
OPTIONAL_FIELDS = ('bikeImageUrl', 'aadharImageUrl')


def _check_year(value):
    year = to_int(value)
    max_year = datetime.now(timezone.utc).year + 1
    if year is None or not (MIN_YEAR <= year <= max_year):
        return 'Year must be valid'
    return None


def _check_url(value, label):
    if value is None:
        return None
    if not isinstance(value, str) or len(value) > 2048:
        return f'{label} must be a URL string'
    return None


_FIELD_CHECKS = {
    'bikeName':           lambda v: check_text(v, 'Bike name'),
    'year':               _check_year,
    'registrationNumber': lambda v: check_text(v, 'Registration number', 32),
    'ownerPhone':         lambda v: check_text(v, 'Phone number', 32),
    'ownerAadhar':        lambda v: check_aadhar(v, 'Owner Aadhar number'),
    'ownerAddress':       lambda v: check_text(v, 'Owner address', 500),
    'purchasePrice':      lambda v: check_amount(v, 'Purchase price'),
    'sellingPrice':       lambda v: check_amount(v, 'Selling price'),
    'bikeImageUrl':       lambda v: _check_url(v, 'Bike image URL'),
    'aadharImageUrl':     lambda v: _check_url(v, 'Aadhar image URL'),
}


def validate_bike(data: dict) -> dict:
    """Validate a full create payload. Every non-optional field is required."""
    errors = unknown_fields(data, EDITABLE_FIELDS)
    for name in EDITABLE_FIELDS:
        if name in OPTIONAL_FIELDS and name not in data:
            continue
        message = _FIELD_CHECKS[name](data.get(name))
        if message:
            errors[name] = message
    return errors


def validate_bike_patch(data: dict) -> dict:
    """
    Validate a partial update. Only supplied fields are checked; read-only
    fields are tolerated (and later dropped), anything else is unknown.
    """
    errors = unknown_fields(data, EDITABLE_FIELDS + READ_ONLY_FIELDS)
    for name in EDITABLE_FIELDS:
        if name in data:
            message = _FIELD_CHECKS[name](data[name])
            if message:
                errors[name] = message
    return errors


def parse_bike(data: dict) -> dict:
    """
    Convert validated values to their stored types.
    Call only after validate_bike / validate_bike_patch returns no errors.
    """
    parsed = {}
    for name in EDITABLE_FIELDS:
        if name not in data:
            continue
        value = data[name]
        if name == 'year':
            value = to_int(value)
        elif name in ('purchasePrice', 'sellingPrice'):
            value = amount(value)
        elif isinstance(value, str):
            value = value.strip()
        parsed[name] = value
    return parsed
