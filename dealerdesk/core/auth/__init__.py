"""DealerDesk Core Authentication Module.

Handles sessions, accounts/profiles, and admin-only user management.
"""
from flask import Blueprint

auth_bp = Blueprint('auth', __name__)

from . import routes  # noqa: E402, F401
