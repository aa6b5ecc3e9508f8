"""
bikeyard/uploads/__init__.py
----------------------------
`uploads`: image upload + storage probe (URL prefix /api).
`files`:   public read access to uploaded objects (URL prefix /files).
"""
from flask import Blueprint

uploads = Blueprint('uploads', __name__)
files = Blueprint('files', __name__)

from bikeyard.uploads import routes  # noqa: F401, E402
