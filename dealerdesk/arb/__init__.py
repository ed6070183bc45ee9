"""DealerDesk ARB Section.

Arbitration cases on sold and inventory vehicles: opening, resolving, and the
list/history views.
"""
from flask import Blueprint

arb_bp = Blueprint('arb', __name__)

from . import routes  # noqa: E402, F401
