"""Vehicle Service - Business logic for inventory, sales and expenses.

Routes call these methods instead of the repositories directly. Failures are
raised as DealerDeskError subclasses and rendered by handle_api_errors.
"""
import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List

from core.exceptions import ConflictError, NotFoundError, ValidationError
from core.hooks import fire
from core.utils.api_helpers import parse_date
from ..models import EDITABLE_FIELDS, STATUS_INVENTORY, TITLE_STATUSES
from ..repositories import ExpenseRepository, NoteRepository, TimelineRepository, VehicleRepository
from .profit import profit_summary

logger = logging.getLogger('dealerdesk.inventory')


def parse_amount(value, field: str, allow_zero: bool = False) -> Decimal:
    """Parse a money field into a Decimal. Raises ValidationError on bad input."""
    if value is None or value == '':
        raise ValidationError(f'{field} is required', details={'field': field})
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f'{field} must be a number', details={'field': field})
    if not amount.is_finite():
        raise ValidationError(f'{field} must be a number', details={'field': field})
    if amount < 0 or (amount == 0 and not allow_zero):
        raise ValidationError(f'{field} must be greater than 0', details={'field': field})
    return amount


def _note_text(data: Dict[str, Any]) -> str:
    text = (data.get('note_text') or '').strip()
    if not text:
        raise ValidationError('note_text is required', details={'field': 'note_text'})
    return text


class VehicleService:

    def __init__(self):
        self.vehicle_repo = VehicleRepository()
        self.expense_repo = ExpenseRepository()
        self.note_repo = NoteRepository()
        self.timeline_repo = TimelineRepository()

    # ============== Vehicles ==============

    def list_active(self, search: str = None) -> List[Dict[str, Any]]:
        return self.vehicle_repo.list_active(search=search)

    def list_sold(self) -> List[Dict[str, Any]]:
        return self.vehicle_repo.list_sold()

    def get_vehicle(self, vehicle_id: int) -> Dict[str, Any]:
        vehicle = self.vehicle_repo.get_by_id(vehicle_id)
        if not vehicle:
            raise NotFoundError('Vehicle', vehicle_id)
        return vehicle

    def get_detail(self, vehicle_id: int) -> Dict[str, Any]:
        """Vehicle row plus its expenses and profit breakdown."""
        vehicle = self.get_vehicle(vehicle_id)
        expenses = self.expense_repo.list_for_vehicle(vehicle_id)
        return {**vehicle, 'expenses': expenses, 'profit': profit_summary(vehicle, expenses)}

    def _clean_fields(self, data: Dict[str, Any]) -> Dict[str, Any]:
        clean = {k: data[k] for k in EDITABLE_FIELDS if k in data}
        if 'title_status' in clean and clean['title_status'] not in TITLE_STATUSES:
            raise ValidationError(
                f"title_status must be one of: {', '.join(TITLE_STATUSES)}",
                details={'field': 'title_status'})
        if clean.get('year') is not None:
            try:
                clean['year'] = int(clean['year'])
            except (TypeError, ValueError):
                raise ValidationError('year must be an integer', details={'field': 'year'})
        for field in ('bought_price', 'buy_fee', 'other_charges'):
            if clean.get(field) not in (None, ''):
                clean[field] = parse_amount(clean[field], field, allow_zero=True)
        return clean

    def create_vehicle(self, data: Dict[str, Any], created_by: int = None) -> Dict[str, Any]:
        for field in ('year', 'make', 'model'):
            if not data.get(field):
                raise ValidationError(f'{field} is required', details={'field': field})
        clean = self._clean_fields(data)
        vehicle = self.vehicle_repo.create(clean, created_by=created_by)
        self.timeline_repo.add(vehicle['id'], 'Vehicle Added', status=STATUS_INVENTORY, user_id=created_by)
        logger.info(f"Vehicle {vehicle['id']} added to inventory by user {created_by}")
        return vehicle

    def update_vehicle(self, vehicle_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        self.get_vehicle(vehicle_id)
        if 'status' in data:
            raise ValidationError('status cannot be edited directly', details={'field': 'status'})
        return self.vehicle_repo.update(vehicle_id, self._clean_fields(data))

    def sell_vehicle(self, vehicle_id: int, data: Dict[str, Any], user_id: int = None) -> Dict[str, Any]:
        """Record a sale. Only vehicles currently in inventory can be sold."""
        vehicle = self.get_vehicle(vehicle_id)
        if vehicle['status'] != STATUS_INVENTORY:
            raise ConflictError(f"Vehicle is {vehicle['status']}, only Inventory vehicles can be sold")

        sale = {
            'sale_invoice': parse_amount(data.get('sale_invoice'), 'sale_invoice'),
            'sale_date': parse_date(data.get('sale_date'), 'sale_date'),
            'buyer_dealership': data.get('buyer_dealership'),
            'buyer_contact_name': data.get('buyer_contact_name'),
            'buyer_aa_id': data.get('buyer_aa_id'),
            'buyer_reference': data.get('buyer_reference'),
            'sale_invoice_status': data.get('sale_invoice_status') or 'UNPAID',
        }
        if sale['sale_invoice_status'] not in ('PAID', 'UNPAID'):
            raise ValidationError('sale_invoice_status must be PAID or UNPAID',
                                  details={'field': 'sale_invoice_status'})

        sold = self.vehicle_repo.mark_sold(vehicle_id, sale, user_id=user_id)
        if not sold:
            # Status changed between the read and the conditional update
            raise ConflictError('Vehicle is no longer in inventory')
        logger.info(f'Vehicle {vehicle_id} sold for {sale["sale_invoice"]} by user {user_id}')
        fire('vehicle.sold', {'vehicle_id': vehicle_id, 'sale_invoice': float(sale['sale_invoice'])})
        return sold

    # ============== Expenses & timeline ==============

    def list_expenses(self, vehicle_id: int) -> List[Dict[str, Any]]:
        self.get_vehicle(vehicle_id)
        return self.expense_repo.list_for_vehicle(vehicle_id)

    def add_expense(self, vehicle_id: int, data: Dict[str, Any], user_id: int = None) -> Dict[str, Any]:
        self.get_vehicle(vehicle_id)
        description = (data.get('expense_description') or '').strip()
        if not description:
            raise ValidationError('expense_description is required',
                                  details={'field': 'expense_description'})
        cost = parse_amount(data.get('cost'), 'cost')
        expense_date = parse_date(data['expense_date'], 'expense_date') if data.get('expense_date') \
            else date.today().isoformat()

        expense = self.expense_repo.create(
            vehicle_id, description, expense_date, cost,
            notes=data.get('notes'), created_by=user_id)
        self.timeline_repo.add(vehicle_id, 'Expense Added', note=description,
                               expense_value=cost, user_id=user_id)
        return expense

    def update_expense(self, vehicle_id: int, expense_id: int, data: Dict[str, Any],
                       user_id: int = None) -> Dict[str, Any]:
        """Edit description, date, cost or notes of one expense. Omitted keys are left alone."""
        self.get_vehicle(vehicle_id)
        fields = {}
        if 'expense_description' in data:
            description = (data['expense_description'] or '').strip()
            if not description:
                raise ValidationError('expense_description cannot be empty',
                                      details={'field': 'expense_description'})
            fields['expense_description'] = description
        if 'expense_date' in data:
            fields['expense_date'] = parse_date(data['expense_date'], 'expense_date')
        if 'cost' in data:
            fields['cost'] = parse_amount(data['cost'], 'cost')
        if 'notes' in data:
            fields['notes'] = (data['notes'] or '').strip() or None
        if not fields:
            raise ValidationError('No expense fields to update')

        expense = self.expense_repo.update(expense_id, vehicle_id, fields)
        if not expense:
            raise NotFoundError('Expense', expense_id)
        self.timeline_repo.add(vehicle_id, 'Expense Updated', note=expense['expense_description'],
                               expense_value=expense['cost'], user_id=user_id)
        return expense

    def delete_expense(self, vehicle_id: int, expense_id: int, user_id: int = None):
        self.get_vehicle(vehicle_id)
        expense = self.expense_repo.delete(expense_id, vehicle_id)
        if not expense:
            raise NotFoundError('Expense', expense_id)
        self.timeline_repo.add(vehicle_id, 'Expense Deleted', note=expense['expense_description'],
                               expense_value=expense['cost'], user_id=user_id)
        logger.info(f'Expense {expense_id} on vehicle {vehicle_id} deleted by user {user_id}')

    # ============== Notes ==============

    def list_notes(self, vehicle_id: int) -> List[Dict[str, Any]]:
        self.get_vehicle(vehicle_id)
        return self.note_repo.list_for_vehicle(vehicle_id)

    def add_note(self, vehicle_id: int, data: Dict[str, Any], user_id: int = None) -> Dict[str, Any]:
        self.get_vehicle(vehicle_id)
        return self.note_repo.create(vehicle_id, _note_text(data), created_by=user_id)

    def update_note(self, vehicle_id: int, note_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        note = self.note_repo.update(note_id, vehicle_id, _note_text(data))
        if not note:
            raise NotFoundError('Note', note_id)
        return note

    def delete_note(self, vehicle_id: int, note_id: int):
        if not self.note_repo.delete(note_id, vehicle_id):
            raise NotFoundError('Note', note_id)

    def get_timeline(self, vehicle_id: int) -> List[Dict[str, Any]]:
        self.get_vehicle(vehicle_id)
        return self.timeline_repo.list_for_vehicle(vehicle_id)
