from flask import Blueprint

main = Blueprint('main', __name__)

from bikeyard.main import routes  # noqa: F401, E402
