from flask import Blueprint

sales = Blueprint('sales', __name__)

from bikeyard.sales import routes  # noqa: F401, E402
