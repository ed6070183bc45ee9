"""DealerDesk Core Auth Models.

User model for Flask-Login authentication.
"""
from flask_login import UserMixin

ROLE_ADMIN = 'admin'
ROLE_SELLER = 'seller'
ROLE_TRANSPORTER = 'transporter'
ROLES = (ROLE_ADMIN, ROLE_SELLER, ROLE_TRANSPORTER)

STATUS_ACTIVE = 'active'
STATUS_INACTIVE = 'inactive'


class User(UserMixin):
    """User class for Flask-Login, built from a joined account+profile row."""

    def __init__(self, user_data):
        self.id = user_data['id']
        self.email = user_data['email']
        self.username = user_data.get('username') or self.email.split('@')[0]
        self.role = user_data.get('role', ROLE_SELLER)
        self.status = user_data.get('status', STATUS_ACTIVE)
        self.account_active = user_data.get('is_active', True)

    @property
    def name(self):
        return self.username

    @property
    def is_active(self):
        return bool(self.account_active) and self.status == STATUS_ACTIVE

    @property
    def is_admin(self):
        return self.role == ROLE_ADMIN

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'username': self.username,
            'role': self.role,
            'status': self.status,
            'is_admin': self.is_admin,
        }
