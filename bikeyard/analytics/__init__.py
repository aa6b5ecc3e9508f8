"""
bikeyard/analytics/__init__.py
------------------------------
Analytics blueprint (admin only).
URL prefix: /api/analytics
"""
from flask import Blueprint

analytics = Blueprint('analytics', __name__)

from bikeyard.analytics import routes  # noqa: E402, F401
