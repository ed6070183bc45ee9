"""Inventory repositories package."""
from .vehicle_repository import VehicleRepository
from .expense_repository import ExpenseRepository
from .note_repository import NoteRepository
from .timeline_repository import TimelineRepository

__all__ = ['VehicleRepository', 'ExpenseRepository', 'NoteRepository', 'TimelineRepository']
