"""
bikeyard/debug/__init__.py
--------------------------
Role-claim inspection helpers. Only registered when ENABLE_DEBUG_ROUTES is
set; never exposed by ProductionConfig unless the env flag turns it on.
"""
from flask import Blueprint

debug = Blueprint('debug', __name__)

from bikeyard.debug import routes  # noqa: F401, E402
