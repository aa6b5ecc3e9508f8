from flask import Blueprint

inventory = Blueprint('inventory', __name__)

from bikeyard.inventory import routes  # noqa: F401, E402
