"""Auth repositories package."""
from .user_repository import UserRepository
from .event_repository import EventRepository

__all__ = ['UserRepository', 'EventRepository']
