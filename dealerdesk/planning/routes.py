"""Planning Routes - tasks and calendar events."""
from flask import request
from flask_login import current_user

from . import planning_bp
from .services import PlanningService
from core.utils.api_helpers import (
    api_login_required, get_json_or_error, handle_api_errors, success_response,
)

_service = PlanningService()


# ============== TASKS ==============

@planning_bp.route('/api/tasks', methods=['GET'])
@api_login_required
@handle_api_errors
def api_list_tasks():
    """Paginated tasks. Filters: status, category, assigned_to, vehicle_id, search."""
    result = _service.list_tasks(
        page=request.args.get('page', 1, type=int),
        limit=request.args.get('limit', 10, type=int),
        status=request.args.get('status'),
        category=request.args.get('category'),
        assigned_to=request.args.get('assigned_to', type=int),
        vehicle_id=request.args.get('vehicle_id', type=int),
        search=request.args.get('search'),
    )
    return success_response(result['items'], pagination=result['pagination'])


@planning_bp.route('/api/tasks', methods=['POST'])
@api_login_required
@handle_api_errors
def api_create_task():
    data, error = get_json_or_error()
    if error:
        return error
    return success_response(_service.create_task(data, assigned_by=current_user.id), 201)


@planning_bp.route('/api/tasks/<int:task_id>', methods=['PATCH'])
@api_login_required
@handle_api_errors
def api_update_task(task_id):
    data, error = get_json_or_error()
    if error:
        return error
    return success_response(_service.update_task(task_id, data))


@planning_bp.route('/api/tasks/<int:task_id>', methods=['DELETE'])
@api_login_required
@handle_api_errors
def api_delete_task(task_id):
    _service.delete_task(task_id)
    return success_response(None)


# ============== EVENTS ==============

@planning_bp.route('/api/events', methods=['GET'])
@api_login_required
@handle_api_errors
def api_list_events():
    return success_response(_service.list_events(
        date_from=request.args.get('date_from'),
        date_to=request.args.get('date_to'),
        status=request.args.get('status'),
        assigned_to=request.args.get('assigned_to', type=int),
    ))


@planning_bp.route('/api/events', methods=['POST'])
@api_login_required
@handle_api_errors
def api_create_event():
    data, error = get_json_or_error()
    if error:
        return error
    return success_response(_service.create_event(data, created_by=current_user.id), 201)


@planning_bp.route('/api/events/<int:event_id>', methods=['PATCH'])
@api_login_required
@handle_api_errors
def api_update_event(event_id):
    data, error = get_json_or_error()
    if error:
        return error
    return success_response(_service.update_event(event_id, data))


@planning_bp.route('/api/events/<int:event_id>', methods=['DELETE'])
@api_login_required
@handle_api_errors
def api_delete_event(event_id):
    _service.delete_event(event_id)
    return success_response(None)
