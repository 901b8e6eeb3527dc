from flask import Blueprint

bp = Blueprint("core", __name__)

# routes register on import
from . import routes  # noqa: E402,F401
