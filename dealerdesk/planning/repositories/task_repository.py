"""Task Repository - dealership to-dos, optionally tied to a vehicle."""
from typing import Optional, Dict, Any, List, Tuple

from core.base_repository import BaseRepository

TASK_STATUSES = ('pending', 'in_progress', 'completed', 'cancelled')
TASK_FIELDS = ('task_name', 'due_date', 'category', 'status', 'notes', 'vehicle_id', 'assigned_to')

_TASK_SELECT = '''
    SELECT t.*,
           au.username AS assigned_to_name, ab.username AS assigned_by_name,
           v.year AS vehicle_year, v.make AS vehicle_make, v.model AS vehicle_model
    FROM tasks t
    LEFT JOIN profiles au ON au.id = t.assigned_to
    LEFT JOIN profiles ab ON ab.id = t.assigned_by
    LEFT JOIN vehicles v ON v.id = t.vehicle_id
'''


class TaskRepository(BaseRepository):

    def get_by_id(self, task_id: int) -> Optional[Dict[str, Any]]:
        return self.query_one(_TASK_SELECT + ' WHERE t.id = %s', (task_id,))

    def list_tasks(self, status: str = None, category: str = None, assigned_to: int = None,
                   vehicle_id: int = None, search: str = None,
                   page: int = 1, limit: int = 10) -> Tuple[List[Dict[str, Any]], int]:
        """Filtered, paginated task list. Returns (rows, total)."""
        query = _TASK_SELECT + ' WHERE 1=1'
        params = []
        if status:
            query += ' AND t.status = %s'
            params.append(status)
        if category:
            query += ' AND t.category = %s'
            params.append(category)
        if assigned_to:
            query += ' AND t.assigned_to = %s'
            params.append(assigned_to)
        if vehicle_id:
            query += ' AND t.vehicle_id = %s'
            params.append(vehicle_id)
        if search:
            query += ' AND (t.task_name ILIKE %s OR t.notes ILIKE %s)'
            params.extend([f'%{search}%', f'%{search}%'])
        query += ' ORDER BY t.created_at DESC, t.id DESC'
        return self.query_page(query, params, page=page, limit=limit)

    def create(self, data: Dict[str, Any], assigned_by: int = None) -> Dict[str, Any]:
        columns = [k for k in TASK_FIELDS if data.get(k) is not None]
        values = [data[k] for k in columns]
        columns.append('assigned_by')
        values.append(assigned_by)
        placeholders = ', '.join(['%s'] * len(columns))
        return self.execute(
            f"INSERT INTO tasks ({', '.join(columns)}) VALUES ({placeholders}) RETURNING *",
            values, returning=True)

    def update(self, task_id: int, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        updates = [f'{k} = %s' for k in TASK_FIELDS if k in data]
        if not updates:
            return self.get_by_id(task_id)
        params = [data[k] for k in TASK_FIELDS if k in data] + [task_id]
        return self.execute(
            f"UPDATE tasks SET {', '.join(updates)}, updated_at = CURRENT_TIMESTAMP "
            f"WHERE id = %s RETURNING *",
            params, returning=True)

    def delete(self, task_id: int) -> bool:
        return self.execute('DELETE FROM tasks WHERE id = %s', (task_id,)) > 0
