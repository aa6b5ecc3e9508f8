"""
bikeyard/sales/validators.py
----------------------------
Validation for the mark-as-sold payload.
"""
from bikeyard.sales.models import SALE_FIELDS
from bikeyard.utils.validation import (
    amount, check_aadhar, check_amount, check_email, check_text, unknown_fields,
)


def validate_sale(data: dict) -> dict:
    errors = unknown_fields(data, SALE_FIELDS)

    checks = {
        'salePrice':       check_amount(data.get('salePrice'), 'Sale price'),
        'customerName':    check_text(data.get('customerName'), 'Customer name'),
        'customerEmail':   check_email(data.get('customerEmail')),
        'customerPhone':   check_text(data.get('customerPhone'), 'Customer phone', 32),
        'customerAadhar':  check_aadhar(data.get('customerAadhar')),
        'customerAddress': check_text(data.get('customerAddress'), 'Customer address', 500),
    }
    errors.update({name: msg for name, msg in checks.items() if msg})
    return errors


def parse_sale(data: dict) -> dict:
    """Call only after validate_sale returns no errors."""
    return {
        'salePrice':       amount(data['salePrice']),
        'customerName':    data['customerName'].strip(),
        'customerEmail':   data['customerEmail'].strip(),
        'customerPhone':   data['customerPhone'].strip(),
        'customerAadhar':  data['customerAadhar'],
        'customerAddress': data['customerAddress'].strip(),
    }
