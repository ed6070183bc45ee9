"""DealerDesk Planning Section.

Tasks and calendar events.
"""
from flask import Blueprint

planning_bp = Blueprint('planning', __name__)

from . import routes  # noqa: E402, F401
