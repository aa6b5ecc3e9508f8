from flask import Blueprint

users = Blueprint('users', __name__)

from bikeyard.users import routes  # noqa: F401, E402
