"""Polling message feed.

Clients call /api/messages/feed with the cursor from their previous poll.
Each poll returns everything newer than the cursor plus whatever was created
in the last few seconds, so a message whose insert committed after a
higher-numbered one is still picked up. Deliveries therefore overlap and can
arrive out of order; clients fold them in with merge_messages, which keeps
one copy per id in (created_at, id) order.
"""
import logging

from .repositories import MessageRepository

logger = logging.getLogger('dealerdesk.chat.feed')

# Trailing window re-read on every poll; must exceed the slowest send commit
REREAD_WINDOW_SECONDS = 10


def _sort_key(message):
    return (message.get('created_at') or '', message['id'])


def merge_messages(existing, incoming):
    """Merge two message lists, de-duplicated by id.

    A message present in both keeps the incoming copy (it may carry a newer
    is_read flag).
    """
    by_id = {m['id']: m for m in existing}
    for m in incoming:
        by_id[m['id']] = m
    return sorted(by_id.values(), key=_sort_key)


def parse_cursor(value) -> int:
    """Cursor is the highest message id already seen. Bad values reset to 0."""
    try:
        cursor = int(value)
    except (TypeError, ValueError):
        return 0
    return max(cursor, 0)


class MessageFeed:

    def __init__(self, message_repo: MessageRepository = None, batch_size: int = 200,
                 reread_window: int = REREAD_WINDOW_SECONDS):
        self._repo = message_repo or MessageRepository()
        self._batch_size = batch_size
        self._reread_window = reread_window

    def poll(self, user_id, cursor=0):
        """Messages for user_id after cursor, plus the recent re-read window.

        Returns:
            {'messages': [...], 'cursor': int, 'unread': int}
        """
        cursor = parse_cursor(cursor)
        rows = self._repo.since(user_id, cursor, limit=self._batch_size,
                                overlap_seconds=self._reread_window)
        messages = merge_messages([], rows)
        next_cursor = max([cursor] + [m['id'] for m in messages])
        if messages:
            logger.debug(f'Feed for user {user_id}: {len(messages)} messages after {cursor}')
        return {
            'messages': messages,
            'cursor': next_cursor,
            'unread': self._repo.unread_count(user_id),
        }
