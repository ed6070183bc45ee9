"""Expense Repository - per-vehicle costs (transport, repairs, ARB adjustments)."""
from typing import Optional, Dict, Any, List

from core.base_repository import BaseRepository


class ExpenseRepository(BaseRepository):

    def list_for_vehicle(self, vehicle_id: int) -> List[Dict[str, Any]]:
        return self.query_all('''
            SELECT * FROM vehicle_expenses
            WHERE vehicle_id = %s
            ORDER BY expense_date DESC, created_at DESC
        ''', (vehicle_id,))

    def list_for_vehicles(self, vehicle_ids: List[int]) -> List[Dict[str, Any]]:
        if not vehicle_ids:
            return []
        return self.query_all('''
            SELECT vehicle_id, expense_description, cost, expense_date
            FROM vehicle_expenses
            WHERE vehicle_id = ANY(%s)
        ''', (list(vehicle_ids),))

    def total_for_vehicle(self, vehicle_id: int) -> float:
        row = self.query_one('''
            SELECT COALESCE(SUM(cost), 0) AS total
            FROM vehicle_expenses WHERE vehicle_id = %s
        ''', (vehicle_id,))
        return row['total'] if row else 0.0

    def create(self, vehicle_id: int, description: str, expense_date: str,
               cost, notes: str = None, created_by: int = None) -> Dict[str, Any]:
        return self.execute('''
            INSERT INTO vehicle_expenses
            (vehicle_id, expense_description, expense_date, cost, notes, created_by)
            VALUES (%s, %s, %s, %s, %s, %s)
            RETURNING *
        ''', (vehicle_id, description, expense_date, cost, notes, created_by), returning=True)

    def get(self, expense_id: int, vehicle_id: int) -> Optional[Dict[str, Any]]:
        return self.query_one(
            'SELECT * FROM vehicle_expenses WHERE id = %s AND vehicle_id = %s',
            (expense_id, vehicle_id))

    def update(self, expense_id: int, vehicle_id: int, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Update the given columns of an expense belonging to vehicle_id."""
        updates = [f'{key} = %s' for key in fields]
        updates.append('updated_at = CURRENT_TIMESTAMP')
        params = list(fields.values()) + [expense_id, vehicle_id]
        return self.execute(
            f"UPDATE vehicle_expenses SET {', '.join(updates)} WHERE id = %s AND vehicle_id = %s RETURNING *",
            params, returning=True)

    def delete(self, expense_id: int, vehicle_id: int) -> Optional[Dict[str, Any]]:
        return self.execute(
            'DELETE FROM vehicle_expenses WHERE id = %s AND vehicle_id = %s RETURNING *',
            (expense_id, vehicle_id), returning=True)
