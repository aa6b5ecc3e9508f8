"""
bikeyard/utils/validation.py
----------------------------
Field-level checks shared by the per-resource validators. Each check
returns an error message, or None when the value is acceptable.
"""
import re
from decimal import Decimal, InvalidOperation

from flask import request

from bikeyard.utils.errors import BadRequest

AADHAR_RE = re.compile(r'^\d{12}$')
EMAIL_RE = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')


def json_body() -> dict:
    """The request body as a dict; 400 if it is missing or not a JSON object."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise BadRequest('Request body must be a JSON object')
    return data


def unknown_fields(data: dict, allowed) -> dict:
    return {key: 'Unknown field' for key in data if key not in allowed}


def check_text(value, label, max_length=200):
    if not isinstance(value, str) or not value.strip():
        return f'{label} is required'
    if len(value.strip()) > max_length:
        return f'{label} must be {max_length} characters or fewer'
    return None


def check_aadhar(value, label='Aadhar number'):
    if not isinstance(value, str) or not AADHAR_RE.match(value):
        return f'{label} must be exactly 12 digits'
    return None


def check_email(value, label='Email'):
    if not isinstance(value, str) or not EMAIL_RE.match(value.strip()):
        return f'Valid {label.lower()} is required'
    return None


def to_decimal(value):
    """Decimal for int/float/numeric-string input, None otherwise."""
    if isinstance(value, bool):
        return None
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    return number if number.is_finite() else None


def check_amount(value, label):
    number = to_decimal(value)
    if number is None or number < 0:
        return f'{label} must be a non-negative number'
    return None


def to_int(value):
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().lstrip('-').isdigit():
        return int(value.strip())
    return None


def amount(value) -> float:
    """Validated amount as stored in documents."""
    return float(to_decimal(value))
