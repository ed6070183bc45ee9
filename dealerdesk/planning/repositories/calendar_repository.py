"""Calendar Repository - scheduled events (pickups, inspections, auctions)."""
from typing import Optional, Dict, Any, List

from core.base_repository import BaseRepository

EVENT_STATUSES = ('scheduled', 'completed', 'cancelled')
EVENT_FIELDS = ('title', 'event_date', 'event_time', 'notes', 'status', 'assigned_to')


class CalendarRepository(BaseRepository):

    def get_by_id(self, event_id: int) -> Optional[Dict[str, Any]]:
        return self.query_one('SELECT * FROM calendar_events WHERE id = %s', (event_id,))

    def list_events(self, date_from: str = None, date_to: str = None, status: str = None,
                    assigned_to: int = None) -> List[Dict[str, Any]]:
        query = '''
            SELECT e.*, p.username AS assigned_to_name
            FROM calendar_events e
            LEFT JOIN profiles p ON p.id = e.assigned_to
            WHERE 1=1
        '''
        params = []
        if date_from:
            query += ' AND e.event_date >= %s'
            params.append(date_from)
        if date_to:
            query += ' AND e.event_date <= %s'
            params.append(date_to)
        if status:
            query += ' AND e.status = %s'
            params.append(status)
        if assigned_to:
            query += ' AND e.assigned_to = %s'
            params.append(assigned_to)
        query += ' ORDER BY e.event_date, e.event_time, e.id'
        return self.query_all(query, params)

    def create(self, data: Dict[str, Any], created_by: int = None) -> Dict[str, Any]:
        columns = [k for k in EVENT_FIELDS if data.get(k) is not None]
        values = [data[k] for k in columns]
        columns.append('created_by')
        values.append(created_by)
        placeholders = ', '.join(['%s'] * len(columns))
        return self.execute(
            f"INSERT INTO calendar_events ({', '.join(columns)}) VALUES ({placeholders}) RETURNING *",
            values, returning=True)

    def update(self, event_id: int, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        keys = [k for k in EVENT_FIELDS if k in data]
        if not keys:
            return self.get_by_id(event_id)
        return self.execute(
            f"UPDATE calendar_events SET {', '.join(f'{k} = %s' for k in keys)}, "
            f"updated_at = CURRENT_TIMESTAMP WHERE id = %s RETURNING *",
            [data[k] for k in keys] + [event_id], returning=True)

    def delete(self, event_id: int) -> bool:
        return self.execute('DELETE FROM calendar_events WHERE id = %s', (event_id,)) > 0
