"""Event Repository - audit trail of user and admin actions.

ARB processing writes its audit row through `insert_with_cursor` so the
row commits or rolls back with the outcome itself.
"""
import json
from typing import Dict, Any

from core.base_repository import BaseRepository

_INSERT_SQL = '''
    INSERT INTO user_events
    (user_id, user_email, event_type, event_description, entity_type, entity_id,
     ip_address, user_agent, details)
    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
    RETURNING id
'''


class EventRepository(BaseRepository):
    """Repository for user event/audit log operations."""

    def log_event(
        self,
        event_type: str,
        event_description: str = None,
        user_id: int = None,
        user_email: str = None,
        entity_type: str = None,
        entity_id: int = None,
        ip_address: str = None,
        user_agent: str = None,
        details: Dict[str, Any] = None
    ) -> int:
        """Log a user event/action for audit purposes.

        Args:
            event_type: login, user_updated, arb_outcome_processed, ...
            event_description: Human-readable description
            user_id: ID of the user who performed the action
            entity_type: Type of entity affected (vehicle, arb_record, user)
            entity_id: ID of the entity affected
            details: Additional JSON-serializable details

        Returns:
            The ID of the created event record
        """
        result = self.execute(_INSERT_SQL, (
            user_id, user_email, event_type, event_description,
            entity_type, entity_id, ip_address, user_agent,
            json.dumps(details or {}, default=str)
        ), returning=True)
        return result['id']

    @staticmethod
    def insert_with_cursor(cursor, event_type: str, user_id: int = None,
                           entity_type: str = None, entity_id: int = None,
                           description: str = None, details: Dict[str, Any] = None):
        """Insert an audit row on a caller-owned cursor (same transaction)."""
        cursor.execute(_INSERT_SQL, (
            user_id, None, event_type, description,
            entity_type, entity_id, None, None,
            json.dumps(details or {}, default=str)
        ))
        return cursor.fetchone()['id']

    def get_events(self, limit: int = 100, offset: int = 0, user_id: int = None,
                   event_type: str = None, entity_type: str = None) -> list[dict]:
        """Get user events with optional filtering."""
        query = '''
            SELECT ue.*, p.username AS user_name
            FROM user_events ue
            LEFT JOIN profiles p ON ue.user_id = p.id
        '''
        params = []
        conditions = []
        if user_id:
            conditions.append('ue.user_id = %s')
            params.append(user_id)
        if event_type:
            conditions.append('ue.event_type = %s')
            params.append(event_type)
        if entity_type:
            conditions.append('ue.entity_type = %s')
            params.append(entity_type)
        if conditions:
            query += ' WHERE ' + ' AND '.join(conditions)
        query += ' ORDER BY ue.created_at DESC LIMIT %s OFFSET %s'
        params.extend([limit, offset])
        return self.query_all(query, params)
