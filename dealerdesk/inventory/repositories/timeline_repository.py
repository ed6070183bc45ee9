"""Timeline Repository - chronological activity log per vehicle."""
from typing import Dict, Any, List

from core.base_repository import BaseRepository


class TimelineRepository(BaseRepository):

    def list_for_vehicle(self, vehicle_id: int) -> List[Dict[str, Any]]:
        return self.query_all('''
            SELECT t.*, p.username AS user_name
            FROM vehicle_timeline t
            LEFT JOIN profiles p ON p.id = t.user_id
            WHERE t.vehicle_id = %s
            ORDER BY t.created_at DESC, t.id DESC
        ''', (vehicle_id,))

    def add(self, vehicle_id: int, action: str, note: str = None, status: str = None,
            expense_value=None, user_id: int = None) -> Dict[str, Any]:
        return self.execute('''
            INSERT INTO vehicle_timeline (vehicle_id, action, note, status, expense_value, user_id)
            VALUES (%s, %s, %s, %s, %s, %s)
            RETURNING *
        ''', (vehicle_id, action, note, status, expense_value, user_id), returning=True)
