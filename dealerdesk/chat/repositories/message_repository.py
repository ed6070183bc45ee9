"""Message Repository - direct messages between users."""
from typing import Optional, Dict, Any, List

from core.base_repository import BaseRepository

_MESSAGE_SELECT = '''
    SELECT m.*, s.username AS sender_name, r.username AS receiver_name
    FROM messages m
    LEFT JOIN profiles s ON s.id = m.sender_id
    LEFT JOIN profiles r ON r.id = m.receiver_id
'''


class MessageRepository(BaseRepository):

    def send(self, sender_id: int, receiver_id: int, content: str) -> Dict[str, Any]:
        return self.execute('''
            INSERT INTO messages (sender_id, receiver_id, content)
            VALUES (%s, %s, %s)
            RETURNING *
        ''', (sender_id, receiver_id, content), returning=True)

    def conversation(self, user_a: int, user_b: int, page: int = 1, limit: int = 50):
        """Messages between two users, oldest first. Returns (rows, total)."""
        return self.query_page(_MESSAGE_SELECT + '''
            WHERE (m.sender_id = %s AND m.receiver_id = %s)
               OR (m.sender_id = %s AND m.receiver_id = %s)
            ORDER BY m.created_at, m.id
        ''', (user_a, user_b, user_b, user_a), page=page, limit=limit)

    def since(self, user_id: int, after_id: int = 0, limit: int = 200,
              overlap_seconds: int = 0) -> List[Dict[str, Any]]:
        """Messages to or from user_id with id > after_id, in id order.

        With overlap_seconds, messages created in that trailing window are
        returned again even if their id is at or below after_id. Ids are
        assigned at insert but commits can land out of order, so a lower id
        may become visible after a higher one was already delivered.
        """
        return self.query_all(_MESSAGE_SELECT + '''
            WHERE (m.receiver_id = %s OR m.sender_id = %s)
              AND (m.id > %s OR m.created_at >= NOW() - make_interval(secs => %s))
            ORDER BY m.id
            LIMIT %s
        ''', (user_id, user_id, after_id or 0, overlap_seconds, limit))

    def mark_read(self, receiver_id: int, sender_id: Optional[int] = None,
                  message_ids: Optional[List[int]] = None) -> int:
        """Mark messages addressed to receiver_id as read. Returns rows changed."""
        query = 'UPDATE messages SET is_read = TRUE WHERE receiver_id = %s AND is_read = FALSE'
        params = [receiver_id]
        if sender_id:
            query += ' AND sender_id = %s'
            params.append(sender_id)
        if message_ids:
            query += ' AND id = ANY(%s)'
            params.append(list(message_ids))
        return self.execute(query, params)

    def unread_count(self, receiver_id: int) -> int:
        row = self.query_one('''
            SELECT COUNT(*) AS count FROM messages
            WHERE receiver_id = %s AND is_read = FALSE
        ''', (receiver_id,))
        return row['count'] if row else 0
