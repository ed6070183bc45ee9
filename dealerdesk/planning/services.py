"""Planning Service - validation for tasks and calendar events."""
import logging
from typing import Any, Dict

from core.exceptions import NotFoundError, ValidationError
from core.utils.api_helpers import pagination, parse_date, parse_time
from .repositories import CalendarRepository, TaskRepository, TASK_STATUSES, EVENT_STATUSES

logger = logging.getLogger('dealerdesk.planning')


def _require(data: Dict[str, Any], *fields):
    for name in fields:
        if not data.get(name):
            raise ValidationError(f'{name} is required', details={'field': name})


def _check_status(value, allowed):
    if value is not None and value not in allowed:
        raise ValidationError(f"status must be one of: {', '.join(allowed)}",
                              details={'field': 'status'})


def _check_schedule(data: Dict[str, Any], date_field: str, time_field: str = None):
    """Validate date/time fields that are present. DATE/TIME columns reject anything else."""
    if date_field in data:
        parse_date(data[date_field], date_field)
    if time_field and time_field in data:
        parse_time(data[time_field], time_field)


class PlanningService:

    def __init__(self):
        self.task_repo = TaskRepository()
        self.calendar_repo = CalendarRepository()

    # ============== Tasks ==============

    def list_tasks(self, page=1, limit=10, **filters) -> Dict[str, Any]:
        # Same clamping as BaseRepository.query_page so the envelope matches the rows
        page, limit = max(1, page or 1), max(1, limit or 1)
        rows, total = self.task_repo.list_tasks(page=page, limit=limit, **filters)
        return {'items': rows, 'pagination': pagination(page, limit, total)}

    def create_task(self, data: Dict[str, Any], assigned_by: int = None) -> Dict[str, Any]:
        _require(data, 'task_name', 'due_date')
        _check_status(data.get('status'), TASK_STATUSES)
        _check_schedule(data, 'due_date')
        task = self.task_repo.create(data, assigned_by=assigned_by)
        logger.info(f"Task {task['id']} created by user {assigned_by}")
        return task

    def update_task(self, task_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        _check_status(data.get('status'), TASK_STATUSES)
        _check_schedule(data, 'due_date')
        task = self.task_repo.update(task_id, data)
        if not task:
            raise NotFoundError('Task', task_id)
        return task

    def delete_task(self, task_id: int):
        if not self.task_repo.delete(task_id):
            raise NotFoundError('Task', task_id)

    # ============== Calendar ==============

    def list_events(self, date_from=None, date_to=None, **filters):
        if date_from:
            parse_date(date_from, 'date_from')
        if date_to:
            parse_date(date_to, 'date_to')
        return self.calendar_repo.list_events(date_from=date_from, date_to=date_to, **filters)

    def create_event(self, data: Dict[str, Any], created_by: int = None) -> Dict[str, Any]:
        _require(data, 'title', 'event_date', 'event_time')
        _check_status(data.get('status'), EVENT_STATUSES)
        _check_schedule(data, 'event_date', 'event_time')
        return self.calendar_repo.create(data, created_by=created_by)

    def update_event(self, event_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        _check_status(data.get('status'), EVENT_STATUSES)
        _check_schedule(data, 'event_date', 'event_time')
        event = self.calendar_repo.update(event_id, data)
        if not event:
            raise NotFoundError('Event', event_id)
        return event

    def delete_event(self, event_id: int):
        if not self.calendar_repo.delete(event_id):
            raise NotFoundError('Event', event_id)
