"""Vehicle Repository - Data access layer for vehicles."""
from typing import Optional, Dict, Any, List

from core.base_repository import BaseRepository
from database import dict_from_row
from ..models import (
    EDITABLE_FIELDS, STATUS_ARB, STATUS_INVENTORY, STATUS_SOLD,
)


class VehicleRepository(BaseRepository):

    def get_by_id(self, vehicle_id: int) -> Optional[Dict[str, Any]]:
        return self.query_one('SELECT * FROM vehicles WHERE id = %s', (vehicle_id,))

    def list_active(self, search: str = None) -> List[Dict[str, Any]]:
        """Active inventory listing.

        Inventory vehicles plus Inventory ARB cases. A sold vehicle under a
        Sold ARB still carries its sale and stays on the sold listing.
        Withdrawn and completed vehicles are excluded.
        """
        query = '''
            SELECT * FROM vehicles
            WHERE (status = %s OR (status = %s AND sale_invoice IS NULL))
        '''
        params = [STATUS_INVENTORY, STATUS_ARB]
        if search:
            query += ' AND (vin ILIKE %s OR make ILIKE %s OR model ILIKE %s)'
            like = f'%{search}%'
            params.extend([like, like, like])
        query += ' ORDER BY created_at DESC'
        return self.query_all(query, params)

    def list_sold(self) -> List[Dict[str, Any]]:
        """Sold vehicles, including those currently under a Sold ARB."""
        return self.query_all('''
            SELECT * FROM vehicles
            WHERE status = %s OR (status = %s AND sale_invoice IS NOT NULL)
            ORDER BY sale_date DESC NULLS LAST, id DESC
        ''', (STATUS_SOLD, STATUS_ARB))

    def create(self, data: Dict[str, Any], created_by: int = None) -> Dict[str, Any]:
        columns = [k for k in EDITABLE_FIELDS if data.get(k) is not None]
        values = [data[k] for k in columns]
        columns += ['status', 'created_by']
        values += [STATUS_INVENTORY, created_by]
        placeholders = ', '.join(['%s'] * len(columns))
        return self.execute(
            f"INSERT INTO vehicles ({', '.join(columns)}) VALUES ({placeholders}) RETURNING *",
            values, returning=True)

    def update(self, vehicle_id: int, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Update editable fields. Status is never changed here."""
        updates = []
        params = []
        for key in EDITABLE_FIELDS:
            if key in data:
                updates.append(f'{key} = %s')
                params.append(data[key])
        if not updates:
            return self.get_by_id(vehicle_id)
        updates.append('updated_at = CURRENT_TIMESTAMP')
        params.append(vehicle_id)
        return self.execute(
            f"UPDATE vehicles SET {', '.join(updates)} WHERE id = %s RETURNING *",
            params, returning=True)

    def mark_sold(self, vehicle_id: int, sale: Dict[str, Any], user_id: int = None) -> Optional[Dict[str, Any]]:
        """Record a sale on an inventory vehicle, with a timeline entry."""
        def _work(cursor):
            cursor.execute('''
                UPDATE vehicles
                SET status = %s, sale_invoice = %s, sale_date = %s,
                    buyer_dealership = %s, buyer_contact_name = %s,
                    buyer_aa_id = %s, buyer_reference = %s,
                    sale_invoice_status = %s, updated_at = CURRENT_TIMESTAMP
                WHERE id = %s AND status = %s
                RETURNING *
            ''', (
                STATUS_SOLD, sale['sale_invoice'], sale['sale_date'],
                sale.get('buyer_dealership'), sale.get('buyer_contact_name'),
                sale.get('buyer_aa_id'), sale.get('buyer_reference'),
                sale.get('sale_invoice_status', 'UNPAID'),
                vehicle_id, STATUS_INVENTORY,
            ))
            row = cursor.fetchone()
            if not row:
                return None
            cursor.execute('''
                INSERT INTO vehicle_timeline (vehicle_id, action, note, status, user_id)
                VALUES (%s, %s, %s, %s, %s)
            ''', (vehicle_id, 'Vehicle Sold', f"Sold for ${sale['sale_invoice']}", STATUS_SOLD, user_id))
            return dict_from_row(row)

        return self.execute_many(_work)
