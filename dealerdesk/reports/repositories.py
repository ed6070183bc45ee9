"""Report Repository - read-only queries feeding the report service."""
from typing import Dict, Any, List

from core.base_repository import BaseRepository
from inventory.models import MISSING_TITLE_STATUSES


class ReportRepository(BaseRepository):

    def sold_arb_records(self, date_from: str = None, date_to: str = None) -> List[Dict[str, Any]]:
        """Sold ARB cases with the vehicle's sale price, oldest first."""
        query = '''
            SELECT a.id, a.vehicle_id, a.outcome, a.adjustment_amount, a.transport_cost,
                   a.created_at, v.sale_invoice
            FROM arb_records a
            LEFT JOIN vehicles v ON v.id = a.vehicle_id
            WHERE a.arb_type = 'Sold ARB'
        '''
        params = []
        if date_from:
            query += ' AND a.created_at >= %s'
            params.append(date_from)
        if date_to:
            query += ' AND a.created_at <= %s'
            params.append(date_to)
        query += ' ORDER BY a.created_at, a.id'
        return self.query_all(query, params)

    def sold_vehicles(self, date_from: str = None, date_to: str = None, make: str = None,
                      model: str = None, location: str = None,
                      buyer: str = None) -> List[Dict[str, Any]]:
        """Vehicles carrying a sale, newest sale first.

        `buyer` matches the dealership or the contact name.
        """
        query = '''
            SELECT id, vin, year, make, model, trim, status, sale_date, sale_invoice,
                   bought_price, buy_fee, other_charges, buyer_dealership,
                   buyer_contact_name, vehicle_location
            FROM vehicles
            WHERE sale_invoice IS NOT NULL
        '''
        params = []
        if date_from:
            query += ' AND sale_date >= %s'
            params.append(date_from)
        if date_to:
            query += ' AND sale_date <= %s'
            params.append(date_to)
        if make:
            query += ' AND make ILIKE %s'
            params.append(make)
        if model:
            query += ' AND model ILIKE %s'
            params.append(model)
        if location:
            query += ' AND vehicle_location ILIKE %s'
            params.append(f'%{location}%')
        if buyer:
            query += ' AND (buyer_dealership ILIKE %s OR buyer_contact_name ILIKE %s)'
            params.extend([f'%{buyer}%', f'%{buyer}%'])
        query += ' ORDER BY sale_date DESC NULLS LAST, id DESC'
        return self.query_all(query, params)

    def missing_title_vehicles(self, statuses) -> List[Dict[str, Any]]:
        """Vehicles in the given statuses whose title has not been received."""
        return self.query_all('''
            SELECT id, vin, year, make, model, trim, status, title_status,
                   vehicle_location, sale_date, created_at
            FROM vehicles
            WHERE status = ANY(%s) AND title_status = ANY(%s)
            ORDER BY id
        ''', (list(statuses), list(MISSING_TITLE_STATUSES)))
