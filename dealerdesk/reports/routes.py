"""Reports Routes."""
from flask import request

from . import reports_bp
from .services import ReportService
from core.utils.api_helpers import admin_required, handle_api_errors, success_response

_service = ReportService()


@reports_bp.route('/api/reports/arbitration', methods=['GET'])
@admin_required
@handle_api_errors
def api_arbitration_report():
    """Sold ARB outcomes by month. Optional ?date_from=&date_to=."""
    return success_response(_service.arbitration_report(
        date_from=request.args.get('date_from'),
        date_to=request.args.get('date_to'),
    ))


@reports_bp.route('/api/reports/profit-per-car', methods=['GET'])
@admin_required
@handle_api_errors
def api_profit_per_car():
    result = _service.profit_per_car({
        'date_from': request.args.get('date_from'),
        'date_to': request.args.get('date_to'),
        'make': request.args.get('make'),
    })
    return success_response(result['items'], totals=result['totals'])


@reports_bp.route('/api/reports/sales', methods=['GET'])
@admin_required
@handle_api_errors
def api_sales_report():
    """Sales grouped by ISO week."""
    return success_response(_service.sales_report({
        key: request.args.get(key)
        for key in ('date_from', 'date_to', 'location', 'buyer', 'make', 'model')
    }))


@reports_bp.route('/api/reports/summary', methods=['GET'])
@admin_required
@handle_api_errors
def api_summary_report():
    """?period=weekly|monthly with optional date_from/date_to."""
    return success_response(_service.summary_report(
        period=request.args.get('period', 'weekly'),
        date_from=request.args.get('date_from'),
        date_to=request.args.get('date_to'),
    ))


@reports_bp.route('/api/reports/missing-titles', methods=['GET'])
@admin_required
@handle_api_errors
def api_missing_titles():
    return success_response(_service.missing_titles(section=request.args.get('section')))
