"""ARB Repository - arbitration cases and their resolution.

Reads (list/get/history/counts) plus the two write paths: opening a case and
applying an outcome. Both writes run in a single transaction that also
touches the vehicle, timeline and audit tables.
"""
from typing import Optional, Dict, Any, List

import psycopg2.errors

from core.auth.repositories import EventRepository
from core.base_repository import BaseRepository
from core.exceptions import AlreadyProcessedError, ConflictError
from database import dict_from_row

_CASE_SELECT = '''
    SELECT a.*,
           v.year AS vehicle_year, v.make AS vehicle_make, v.model AS vehicle_model,
           v.trim AS vehicle_trim, v.vin AS vehicle_vin, v.status AS vehicle_status,
           v.sale_invoice AS vehicle_sale_invoice, v.bought_price AS vehicle_bought_price,
           v.sale_date AS vehicle_sale_date, v.buyer_dealership AS vehicle_buyer_dealership,
           v.buyer_contact_name AS vehicle_buyer_contact_name,
           p.username AS creator_username, p.email AS creator_email
    FROM arb_records a
    LEFT JOIN vehicles v ON v.id = a.vehicle_id
    LEFT JOIN profiles p ON p.id = a.created_by
'''


def vehicle_label(row: Dict[str, Any]) -> str:
    if not row.get('vehicle_make'):
        return 'Unknown Vehicle'
    label = f"{row['vehicle_year']} {row['vehicle_make']} {row['vehicle_model']}"
    if row.get('vehicle_trim'):
        label += f" ({row['vehicle_trim']})"
    return label


def to_case_summary(row: Dict[str, Any]) -> Dict[str, Any]:
    """Shape a joined case row into a list item."""
    return {
        'id': row['id'],
        'vehicle_id': row['vehicle_id'],
        'vehicle': vehicle_label(row),
        'vin': row.get('vehicle_vin') or 'N/A',
        'vehicle_status': row.get('vehicle_status'),
        'arb_type': row['arb_type'],
        'outcome': row['outcome'],
        'adjustment_amount': row.get('adjustment_amount'),
        'transport_type': row.get('transport_type'),
        'transport_location': row.get('transport_location'),
        'transport_date': row.get('transport_date'),
        'transport_cost': row.get('transport_cost'),
        'notes': row.get('notes'),
        'created_at': row.get('created_at'),
        'processed_at': row.get('processed_at'),
        'created_by': {
            'id': row.get('created_by'),
            'username': row.get('creator_username'),
            'email': row.get('creator_email'),
        } if row.get('created_by') else None,
        'sold_date': row.get('vehicle_sale_date'),
        'sold_price': row.get('vehicle_sale_invoice'),
        'buyer_name': (row.get('vehicle_buyer_contact_name')
                       or row.get('vehicle_buyer_dealership') or 'N/A'),
    }


class ARBRepository(BaseRepository):

    to_case_summary = staticmethod(to_case_summary)

    # ============== Reads ==============

    def get_by_id(self, arb_id: int) -> Optional[Dict[str, Any]]:
        return self.query_one('SELECT * FROM arb_records WHERE id = %s', (arb_id,))

    def get_latest(self, vehicle_id: int, arb_type: str) -> Optional[Dict[str, Any]]:
        """Newest record of this type for the vehicle, whatever its outcome."""
        return self.query_one('''
            SELECT * FROM arb_records
            WHERE vehicle_id = %s AND arb_type = %s
            ORDER BY created_at DESC, id DESC
            LIMIT 1
        ''', (vehicle_id, arb_type))

    def get_pending(self, vehicle_id: int) -> Optional[Dict[str, Any]]:
        return self.query_one('''
            SELECT * FROM arb_records WHERE vehicle_id = %s AND outcome = 'Pending'
        ''', (vehicle_id,))

    def list_cases(self, arb_type: str = None, outcome: str = None) -> List[Dict[str, Any]]:
        query = _CASE_SELECT + ' WHERE 1=1'
        params = []
        if arb_type:
            query += ' AND a.arb_type = %s'
            params.append(arb_type)
        if outcome:
            query += ' AND a.outcome = %s'
            params.append(outcome)
        query += ' ORDER BY a.created_at DESC, a.id DESC'
        return self.query_all(query, params)

    def get_case(self, arb_id: int) -> Optional[Dict[str, Any]]:
        return self.query_one(_CASE_SELECT + ' WHERE a.id = %s', (arb_id,))

    def get_history(self, vehicle_id: int) -> List[Dict[str, Any]]:
        return self.query_all(
            _CASE_SELECT + ' WHERE a.vehicle_id = %s ORDER BY a.created_at DESC, a.id DESC',
            (vehicle_id,))

    def count_by_outcome(self, arb_type: str = None) -> Dict[str, int]:
        """Counts per outcome, plus `total` and `resolved`."""
        query = 'SELECT outcome, COUNT(*) AS count FROM arb_records'
        params = []
        if arb_type:
            query += ' WHERE arb_type = %s'
            params.append(arb_type)
        query += ' GROUP BY outcome'
        counts = {row['outcome']: row['count'] for row in self.query_all(query, params)}
        total = sum(counts.values())
        return {
            'pending': counts.get('Pending', 0),
            'denied': counts.get('Denied', 0),
            'price_adjustment': counts.get('Price Adjustment', 0),
            'buyer_withdrew': counts.get('Buyer Withdrew', 0),
            'withdrawn': counts.get('Withdrawn', 0),
            'resolved': total - counts.get('Pending', 0),
            'total': total,
        }

    # ============== Writes ==============

    def create_pending(self, vehicle_id: int, arb_type: str, created_by: int = None,
                       notes: str = None) -> Dict[str, Any]:
        """Open a case and move the vehicle to ARB in one transaction.

        Raises:
            ConflictError: the vehicle already has a Pending case.
        """
        def _work(cursor):
            try:
                cursor.execute('''
                    INSERT INTO arb_records (vehicle_id, arb_type, outcome, notes, created_by)
                    VALUES (%s, %s, 'Pending', %s, %s)
                    RETURNING *
                ''', (vehicle_id, arb_type, notes, created_by))
            except psycopg2.errors.UniqueViolation:
                raise ConflictError('Vehicle already has a pending ARB case',
                                    details={'vehicle_id': vehicle_id})
            record = cursor.fetchone()

            cursor.execute('''
                UPDATE vehicles SET status = 'ARB', updated_at = CURRENT_TIMESTAMP
                WHERE id = %s
            ''', (vehicle_id,))
            cursor.execute('''
                INSERT INTO vehicle_timeline (vehicle_id, action, note, status, user_id)
                VALUES (%s, %s, %s, %s, %s)
            ''', (vehicle_id, 'ARB Initiated', notes or f'{arb_type} opened', 'ARB', created_by))
            EventRepository.insert_with_cursor(
                cursor, 'arb_initiated', user_id=created_by,
                entity_type='arb_record', entity_id=record['id'],
                description=f'{arb_type} opened for vehicle {vehicle_id}')
            return dict_from_row(record)

        return self.execute_many(_work)

    def apply_outcome(self, arb_id: int, vehicle_id: int, request, plan,
                      processed_by: int = None) -> Dict[str, Any]:
        """Resolve a Pending case and apply its vehicle/expense effects atomically.

        The case update is conditional on outcome = 'Pending'; if another
        request got there first nothing is written.

        Raises:
            AlreadyProcessedError: the case already left Pending.
        """
        def _work(cursor):
            cursor.execute('''
                UPDATE arb_records
                SET outcome = %s, adjustment_amount = %s, transport_type = %s,
                    transport_location = %s, transport_date = %s, transport_cost = %s,
                    notes = COALESCE(%s, notes), processed_by = %s,
                    processed_at = CURRENT_TIMESTAMP, updated_at = CURRENT_TIMESTAMP
                WHERE id = %s AND outcome = 'Pending'
                RETURNING *
            ''', (
                request.outcome, request.adjustment_amount, request.transport_type,
                request.transport_location, request.transport_date, request.transport_cost,
                request.notes, processed_by, arb_id,
            ))
            arb_row = cursor.fetchone()
            if not arb_row:
                raise AlreadyProcessedError(arb_id)

            columns = list(plan.vehicle_updates)
            assignments = ', '.join(f'{c} = %s' for c in columns)
            cursor.execute(
                f'UPDATE vehicles SET {assignments}, updated_at = CURRENT_TIMESTAMP '
                f'WHERE id = %s RETURNING *',
                [plan.vehicle_updates[c] for c in columns] + [vehicle_id])
            vehicle_row = cursor.fetchone()

            if plan.expense:
                cursor.execute('''
                    INSERT INTO vehicle_expenses
                    (vehicle_id, expense_description, expense_date, cost, notes, created_by)
                    VALUES (%s, %s, %s, %s, %s, %s)
                ''', (
                    vehicle_id, plan.expense['expense_description'], plan.expense['expense_date'],
                    plan.expense['cost'], plan.expense.get('notes'), processed_by,
                ))

            cursor.execute('''
                INSERT INTO vehicle_timeline (vehicle_id, action, note, status, expense_value, user_id)
                VALUES (%s, %s, %s, %s, %s, %s)
            ''', (
                vehicle_id, 'ARB Outcome Processed', plan.timeline_note,
                plan.vehicle_updates['status'], plan.expense_value, processed_by,
            ))

            EventRepository.insert_with_cursor(
                cursor, 'arb_outcome_processed', user_id=processed_by,
                entity_type='arb_record', entity_id=arb_id,
                description=plan.timeline_note,
                details={'vehicle_id': vehicle_id, 'arb_type': request.arb_type,
                         'outcome': request.outcome})

            return {'arb_record': dict_from_row(arb_row), 'vehicle': dict_from_row(vehicle_row)}

        return self.execute_many(_work)
