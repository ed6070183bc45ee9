"""Inventory Routes - vehicles, sales, expenses, notes, timeline."""
from flask import request
from flask_login import current_user

from . import inventory_bp
from .services import VehicleService
from core.utils.api_helpers import (
    api_login_required, get_json_or_error, handle_api_errors, success_response,
)

_service = VehicleService()


@inventory_bp.route('/api/vehicles', methods=['GET'])
@api_login_required
@handle_api_errors
def api_list_vehicles():
    """Active inventory (Inventory + ARB)."""
    return success_response(_service.list_active(search=request.args.get('search')))


@inventory_bp.route('/api/vehicles', methods=['POST'])
@api_login_required
@handle_api_errors
def api_create_vehicle():
    data, error = get_json_or_error()
    if error:
        return error
    return success_response(_service.create_vehicle(data, created_by=current_user.id), 201)


@inventory_bp.route('/api/vehicles/sold', methods=['GET'])
@api_login_required
@handle_api_errors
def api_list_sold():
    return success_response(_service.list_sold())


@inventory_bp.route('/api/vehicles/<int:vehicle_id>', methods=['GET'])
@api_login_required
@handle_api_errors
def api_get_vehicle(vehicle_id):
    return success_response(_service.get_detail(vehicle_id))


@inventory_bp.route('/api/vehicles/<int:vehicle_id>', methods=['PATCH'])
@api_login_required
@handle_api_errors
def api_update_vehicle(vehicle_id):
    data, error = get_json_or_error()
    if error:
        return error
    return success_response(_service.update_vehicle(vehicle_id, data))


@inventory_bp.route('/api/vehicles/<int:vehicle_id>/sell', methods=['POST'])
@api_login_required
@handle_api_errors
def api_sell_vehicle(vehicle_id):
    data, error = get_json_or_error()
    if error:
        return error
    return success_response(_service.sell_vehicle(vehicle_id, data, user_id=current_user.id))


@inventory_bp.route('/api/vehicles/<int:vehicle_id>/expenses', methods=['GET'])
@api_login_required
@handle_api_errors
def api_list_expenses(vehicle_id):
    return success_response(_service.list_expenses(vehicle_id))


@inventory_bp.route('/api/vehicles/<int:vehicle_id>/expenses', methods=['POST'])
@api_login_required
@handle_api_errors
def api_add_expense(vehicle_id):
    data, error = get_json_or_error()
    if error:
        return error
    return success_response(_service.add_expense(vehicle_id, data, user_id=current_user.id), 201)


@inventory_bp.route('/api/vehicles/<int:vehicle_id>/timeline', methods=['GET'])
@api_login_required
@handle_api_errors
def api_vehicle_timeline(vehicle_id):
    return success_response(_service.get_timeline(vehicle_id))


@inventory_bp.route('/api/vehicles/<int:vehicle_id>/expenses/<int:expense_id>', methods=['PATCH'])
@api_login_required
@handle_api_errors
def api_update_expense(vehicle_id, expense_id):
    data, error = get_json_or_error()
    if error:
        return error
    return success_response(_service.update_expense(vehicle_id, expense_id, data, user_id=current_user.id))


@inventory_bp.route('/api/vehicles/<int:vehicle_id>/expenses/<int:expense_id>', methods=['DELETE'])
@api_login_required
@handle_api_errors
def api_delete_expense(vehicle_id, expense_id):
    _service.delete_expense(vehicle_id, expense_id, user_id=current_user.id)
    return success_response(None)


@inventory_bp.route('/api/vehicles/<int:vehicle_id>/notes', methods=['GET'])
@api_login_required
@handle_api_errors
def api_list_notes(vehicle_id):
    """Notes on a vehicle, newest first."""
    return success_response(_service.list_notes(vehicle_id))


@inventory_bp.route('/api/vehicles/<int:vehicle_id>/notes', methods=['POST'])
@api_login_required
@handle_api_errors
def api_add_note(vehicle_id):
    data, error = get_json_or_error()
    if error:
        return error
    return success_response(_service.add_note(vehicle_id, data, user_id=current_user.id), 201)


@inventory_bp.route('/api/vehicles/<int:vehicle_id>/notes/<int:note_id>', methods=['PATCH'])
@api_login_required
@handle_api_errors
def api_update_note(vehicle_id, note_id):
    data, error = get_json_or_error()
    if error:
        return error
    return success_response(_service.update_note(vehicle_id, note_id, data))


@inventory_bp.route('/api/vehicles/<int:vehicle_id>/notes/<int:note_id>', methods=['DELETE'])
@api_login_required
@handle_api_errors
def api_delete_note(vehicle_id, note_id):
    _service.delete_note(vehicle_id, note_id)
    return success_response(None)
