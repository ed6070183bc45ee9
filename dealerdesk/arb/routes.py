"""ARB Routes - case list/detail, per-vehicle history, initiate, resolve."""
from flask import request
from flask_login import current_user

from . import arb_bp
from .processor import ARBProcessor
from .repositories import ARBRepository, to_case_summary
from .validator import rules_table
from core.exceptions import NotFoundError, ValidationError
from core.utils.api_helpers import (
    api_login_required, get_json_or_error, handle_api_errors, success_response,
)

_arb_repo = ARBRepository()
_processor = ARBProcessor(arb_repo=_arb_repo)


def _truthy(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'yes', 'on')
    return bool(value)


def _arb_id(value):
    if value is None or value == '':
        return None
    if isinstance(value, bool):
        raise ValidationError('arb_id must be an integer', details={'field': 'arb_id'})
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError('arb_id must be an integer', details={'field': 'arb_id'})


@arb_bp.route('/api/arb', methods=['GET'])
@api_login_required
@handle_api_errors
def api_list_arb():
    """All cases, newest first. Optional ?arb_type= and ?outcome= filters."""
    arb_type = request.args.get('arb_type') or None
    outcome = request.args.get('outcome') or None
    rows = _arb_repo.list_cases(arb_type=arb_type, outcome=outcome)
    return success_response(
        [to_case_summary(r) for r in rows],
        counts=_arb_repo.count_by_outcome(arb_type=arb_type),
    )


@arb_bp.route('/api/arb/rules', methods=['GET'])
@api_login_required
def api_arb_rules():
    return success_response(rules_table())


@arb_bp.route('/api/arb/<int:arb_id>', methods=['GET'])
@api_login_required
@handle_api_errors
def api_get_arb(arb_id):
    row = _arb_repo.get_case(arb_id)
    if not row:
        raise NotFoundError('ARB record', arb_id)
    return success_response(to_case_summary(row))


@arb_bp.route('/api/vehicles/<int:vehicle_id>/arb/history', methods=['GET'])
@api_login_required
@handle_api_errors
def api_arb_history(vehicle_id):
    return success_response([to_case_summary(r) for r in _arb_repo.get_history(vehicle_id)])


@arb_bp.route('/api/vehicles/<int:vehicle_id>/arb/initiate', methods=['POST'])
@api_login_required
@handle_api_errors
def api_initiate_arb(vehicle_id):
    data, error = get_json_or_error()
    if error:
        return error
    record = _processor.initiate(
        vehicle_id, data.get('arb_type'),
        created_by=current_user.id, notes=data.get('notes'))
    return success_response(record, 201)


@arb_bp.route('/api/vehicles/<int:vehicle_id>/arb/outcome', methods=['POST'])
@api_login_required
@handle_api_errors
def api_process_outcome(vehicle_id):
    data, error = get_json_or_error()
    if error:
        return error
    result = _processor.process_outcome(
        vehicle_id,
        data.get('arb_type'),
        data.get('outcome'),
        adjustment_amount=data.get('adjustment_amount'),
        transport_type=data.get('transport_type'),
        transport_location=data.get('transport_location'),
        transport_date=data.get('transport_date'),
        transport_cost=data.get('transport_cost'),
        notes=data.get('notes'),
        processed_by=current_user.id,
        arb_id=_arb_id(data.get('arb_id')),
        confirm_withdrawal=_truthy(data.get('confirm_withdrawal')),
    )
    return success_response(result)
