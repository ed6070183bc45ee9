"""Note Repository - free-text notes attached to a vehicle."""
from typing import Optional, Dict, Any, List

from core.base_repository import BaseRepository


class NoteRepository(BaseRepository):

    def list_for_vehicle(self, vehicle_id: int) -> List[Dict[str, Any]]:
        return self.query_all('''
            SELECT n.*, p.username AS created_by_name
            FROM vehicle_notes n
            LEFT JOIN profiles p ON p.id = n.created_by
            WHERE n.vehicle_id = %s
            ORDER BY n.created_at DESC, n.id DESC
        ''', (vehicle_id,))

    def create(self, vehicle_id: int, note_text: str, created_by: int = None) -> Dict[str, Any]:
        return self.execute('''
            INSERT INTO vehicle_notes (vehicle_id, note_text, created_by)
            VALUES (%s, %s, %s)
            RETURNING *
        ''', (vehicle_id, note_text, created_by), returning=True)

    def update(self, note_id: int, vehicle_id: int, note_text: str) -> Optional[Dict[str, Any]]:
        return self.execute('''
            UPDATE vehicle_notes SET note_text = %s, updated_at = CURRENT_TIMESTAMP
            WHERE id = %s AND vehicle_id = %s
            RETURNING *
        ''', (note_text, note_id, vehicle_id), returning=True)

    def delete(self, note_id: int, vehicle_id: int) -> bool:
        return self.execute(
            'DELETE FROM vehicle_notes WHERE id = %s AND vehicle_id = %s',
            (note_id, vehicle_id)) > 0
