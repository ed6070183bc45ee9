"""DealerDesk Reports Section.

Arbitration outcomes, profit per car, weekly sales, period summaries
and missing titles.
"""
from flask import Blueprint

reports_bp = Blueprint('reports', __name__)

from . import routes  # noqa: E402, F401
