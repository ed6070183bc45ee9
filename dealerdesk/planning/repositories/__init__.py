"""Planning repositories package."""
from .task_repository import TaskRepository, TASK_STATUSES
from .calendar_repository import CalendarRepository, EVENT_STATUSES

__all__ = ['TaskRepository', 'CalendarRepository', 'TASK_STATUSES', 'EVENT_STATUSES']
