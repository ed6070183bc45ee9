"""Report Service - arbitration, profit, sales and missing-title reports.

The aggregation functions are pure and take plain rows, so they can be fed
from the repository or from fixtures.
"""
from collections import OrderedDict
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List

from core.exceptions import ValidationError
from core.utils.api_helpers import parse_date
from inventory.models import STATUS_ARB, STATUS_INVENTORY, STATUS_SOLD
from inventory.repositories import ExpenseRepository
from inventory.services.profit import net_profit, to_decimal, total_cost
from ..repositories import ReportRepository

CENTS = Decimal('0.01')

SUMMARY_PERIODS = ('weekly', 'monthly')

STATUS_SECTIONS = {
    STATUS_INVENTORY: 'inventory',
    STATUS_SOLD: 'sold',
    STATUS_ARB: 'arb',
}


def _round(value: Decimal) -> float:
    return float(value.quantize(CENTS, rounding=ROUND_HALF_UP))


def _average(values: List[Decimal]) -> float:
    if not values:
        return 0.0
    return _round(sum(values, Decimal('0')) / len(values))


def _month_key(created_at) -> str:
    if hasattr(created_at, 'strftime'):
        return created_at.strftime('%Y-%m')
    return str(created_at)[:7]


def _as_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _week_key(sale_date) -> str:
    year, week, _ = _as_date(sale_date).isocalendar()
    return f'{year}-W{week:02d}'


def _vehicle_label(v: Dict[str, Any]) -> str:
    return f"{v['year']} {v['make']} {v['model']}"


def _expenses_by_vehicle(expenses: List[Dict[str, Any]]) -> Dict[Any, List[Dict[str, Any]]]:
    grouped = {}
    for e in expenses:
        grouped.setdefault(e['vehicle_id'], []).append(e)
    return grouped


def summarize_arbitration(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Group Sold ARB cases by YYYY-MM.

    Price-adjustment percentages only count cases where both the sale price
    and the adjustment are positive.
    """
    months = OrderedDict()
    for row in rows:
        key = _month_key(row['created_at'])
        bucket = months.setdefault(key, {
            'total': 0, 'denied': 0, 'withdrew': 0, 'transport_costs': [],
            'adjusted': 0, 'amounts': [], 'percents': [],
        })
        bucket['total'] += 1
        outcome = row.get('outcome')
        if outcome == 'Denied':
            bucket['denied'] += 1
        elif outcome == 'Buyer Withdrew':
            bucket['withdrew'] += 1
            if row.get('transport_cost'):
                bucket['transport_costs'].append(to_decimal(row['transport_cost']))
        elif outcome == 'Price Adjustment':
            bucket['adjusted'] += 1
            amount = to_decimal(row.get('adjustment_amount'))
            sale_price = to_decimal(row.get('sale_invoice'))
            if amount > 0 and sale_price > 0:
                bucket['amounts'].append(amount)
                bucket['percents'].append(amount / sale_price * 100)

    return [
        {
            'month': month,
            'total_arbs': b['total'],
            'denied': b['denied'],
            'buyer_withdrew': {
                'count': b['withdrew'],
                'avg_transport_cost': _average(b['transport_costs']),
            },
            'price_adjusted': {
                'count': b['adjusted'],
                'avg_amount': _average(b['amounts']),
                'avg_percent': _average(b['percents']),
            },
        }
        for month, b in sorted(months.items())
    ]


def summarize_profit(vehicles: List[Dict[str, Any]], expenses: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Per-car profit rows plus totals."""
    by_vehicle = _expenses_by_vehicle(expenses)

    items = []
    total_sales = total_costs = total_profit = Decimal('0')
    for v in vehicles:
        vehicle_expenses = by_vehicle.get(v['id'], [])
        cost = total_cost(v, vehicle_expenses)
        profit = net_profit(v, vehicle_expenses)
        expenses_total = sum((to_decimal(e['cost']) for e in vehicle_expenses), Decimal('0'))
        items.append({
            'vehicle_id': v['id'],
            'vehicle': _vehicle_label(v),
            'vin': v.get('vin'),
            'sale_date': v.get('sale_date'),
            'sale_invoice': v.get('sale_invoice'),
            'expenses_total': _round(expenses_total),
            'total_cost': _round(cost),
            'net_profit': _round(profit) if profit is not None else None,
        })
        total_sales += to_decimal(v.get('sale_invoice'))
        total_costs += cost
        if profit is not None:
            total_profit += profit

    return {
        'items': items,
        'totals': {
            'count': len(items),
            'sales': _round(total_sales),
            'costs': _round(total_costs),
            'net_profit': _round(total_profit),
            'avg_profit': _round(total_profit / len(items)) if items else 0.0,
        },
    }


def summarize_sales(vehicles: List[Dict[str, Any]], expenses: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Group sales by ISO week (YYYY-Www), best-selling week first."""
    by_vehicle = _expenses_by_vehicle(expenses)
    weeks = {}
    for v in vehicles:
        if not v.get('sale_date'):
            continue
        sale_price = to_decimal(v.get('sale_invoice'))
        profit = net_profit(v, by_vehicle.get(v['id'], [])) or Decimal('0')
        week = weeks.setdefault(_week_key(v['sale_date']), {
            'sales': Decimal('0'), 'profit': Decimal('0'), 'vehicles': [],
        })
        week['sales'] += sale_price
        week['profit'] += profit
        week['vehicles'].append({
            'vehicle_id': v['id'],
            'vehicle': _vehicle_label(v),
            'vin': v.get('vin'),
            'sale_date': v['sale_date'],
            'sale_invoice': _round(sale_price),
            'buyer_dealership': v.get('buyer_dealership'),
            'net_profit': _round(profit),
        })

    report = [
        {
            'week': key,
            'vehicle_count': len(w['vehicles']),
            'total_sales': _round(w['sales']),
            'avg_sale_price': _round(w['sales'] / len(w['vehicles'])),
            'total_profit': _round(w['profit']),
            'vehicles': w['vehicles'],
        }
        for key, w in weeks.items()
    ]
    report.sort(key=lambda w: (-w['total_sales'], w['week']))
    return report


def summarize_periods(vehicles: List[Dict[str, Any]], expenses: List[Dict[str, Any]],
                      period: str = 'weekly') -> List[Dict[str, Any]]:
    """Gross sales, expenses and net profit per week or month, oldest first."""
    if period not in SUMMARY_PERIODS:
        raise ValidationError(f"period must be one of: {', '.join(SUMMARY_PERIODS)}",
                              details={'field': 'period'})
    by_vehicle = _expenses_by_vehicle(expenses)
    periods = {}
    for v in vehicles:
        if not v.get('sale_date'):
            continue
        key = _week_key(v['sale_date']) if period == 'weekly' else _month_key(v['sale_date'])
        vehicle_expenses = by_vehicle.get(v['id'], [])
        sale_price = to_decimal(v.get('sale_invoice'))
        profit = net_profit(v, vehicle_expenses) or Decimal('0')
        bucket = periods.setdefault(key, {
            'sales': Decimal('0'), 'expenses': Decimal('0'), 'profit': Decimal('0'), 'vehicles': [],
        })
        bucket['sales'] += sale_price
        bucket['expenses'] += sum((to_decimal(e['cost']) for e in vehicle_expenses), Decimal('0'))
        bucket['profit'] += profit
        bucket['vehicles'].append({
            'vehicle_id': v['id'],
            'sale_date': v['sale_date'],
            'sale_price': _round(sale_price),
            'profit': _round(profit),
        })

    return [
        {
            'period': key,
            'vehicle_count': len(b['vehicles']),
            'gross_sales': _round(b['sales']),
            'total_expenses': _round(b['expenses']),
            'net_profit': _round(b['profit']),
            'vehicles': b['vehicles'],
        }
        for key, b in sorted(periods.items())
    ]


def summarize_missing_titles(rows: List[Dict[str, Any]], today: date = None) -> List[Dict[str, Any]]:
    """Vehicles still waiting on a title, longest wait first.

    Inventory vehicles count from the day they were added, sold and ARB
    vehicles from the sale date.
    """
    today = today or date.today()
    items = []
    for row in rows:
        section = STATUS_SECTIONS[row['status']]
        since = row['created_at'] if section == 'inventory' else (row.get('sale_date') or row['created_at'])
        items.append({
            'vehicle_id': row['id'],
            'vehicle': _vehicle_label(row),
            'trim': row.get('trim'),
            'vin': row.get('vin'),
            'section': section,
            'title_status': row['title_status'],
            'location': row.get('vehicle_location'),
            'since': since,
            'days_missing': (today - _as_date(since)).days,
        })
    items.sort(key=lambda item: (-item['days_missing'], item['vehicle_id']))
    return items


class ReportService:

    def __init__(self, report_repo: ReportRepository = None, expense_repo: ExpenseRepository = None):
        self.report_repo = report_repo or ReportRepository()
        self.expense_repo = expense_repo or ExpenseRepository()

    def arbitration_report(self, date_from: str = None, date_to: str = None) -> List[Dict[str, Any]]:
        return summarize_arbitration(self.report_repo.sold_arb_records(date_from, date_to))

    def profit_per_car(self, filters: Dict[str, Any] = None) -> Dict[str, Any]:
        filters = filters or {}
        vehicles = self.report_repo.sold_vehicles(
            date_from=filters.get('date_from'),
            date_to=filters.get('date_to'),
            make=filters.get('make'),
        )
        expenses = self.expense_repo.list_for_vehicles([v['id'] for v in vehicles])
        return summarize_profit(vehicles, expenses)

    def _sold_with_expenses(self, filters: Dict[str, Any]):
        for field in ('date_from', 'date_to'):
            if filters.get(field):
                parse_date(filters[field], field)
        vehicles = self.report_repo.sold_vehicles(**{k: v for k, v in filters.items() if v})
        return vehicles, self.expense_repo.list_for_vehicles([v['id'] for v in vehicles])

    def sales_report(self, filters: Dict[str, Any] = None) -> List[Dict[str, Any]]:
        """Weekly sales. Filters: date_from, date_to, location, buyer, make, model."""
        return summarize_sales(*self._sold_with_expenses(filters or {}))

    def summary_report(self, period: str = 'weekly', date_from: str = None,
                       date_to: str = None) -> List[Dict[str, Any]]:
        vehicles, expenses = self._sold_with_expenses({'date_from': date_from, 'date_to': date_to})
        return summarize_periods(vehicles, expenses, period or 'weekly')

    def missing_titles(self, section: str = None, today: date = None) -> List[Dict[str, Any]]:
        """Missing titles for one section (inventory, sold, arb) or all of them."""
        if section in (None, '', 'all'):
            statuses = list(STATUS_SECTIONS)
        else:
            statuses = [s for s, name in STATUS_SECTIONS.items() if name == section]
            if not statuses:
                raise ValidationError('section must be one of: all, inventory, sold, arb',
                                      details={'field': 'section'})
        return summarize_missing_titles(self.report_repo.missing_title_vehicles(statuses), today)
