"""Auth services package."""
from .user_service import UserService, normalize_status

__all__ = ['UserService', 'normalize_status']
