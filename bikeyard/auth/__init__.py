from flask import Blueprint

auth = Blueprint('auth', __name__)

from bikeyard.auth import routes   # noqa: F401, E402
