"""Chat Routes - conversation, send, feed, mark read."""
from flask import request
from flask_login import current_user

from . import chat_bp
from .feed import MessageFeed
from .repositories import MessageRepository
from core.auth.repositories import UserRepository
from core.hooks import fire
from core.utils.api_helpers import (
    api_login_required, error_response, get_json_or_error, handle_api_errors, pagination,
    success_response, RateLimiter,
)

_message_repo = MessageRepository()
_user_repo = UserRepository()
_feed = MessageFeed(_message_repo)
_send_limiter = RateLimiter()

MAX_MESSAGE_LENGTH = 5000


@chat_bp.route('/api/messages', methods=['GET'])
@api_login_required
@handle_api_errors
def api_conversation():
    """Conversation between the current user and ?receiver_id=."""
    receiver_id = request.args.get('receiver_id', type=int)
    if not receiver_id:
        return error_response('receiver_id is required', code='validation_error')
    page = max(1, request.args.get('page', 1, type=int) or 1)
    limit = max(1, request.args.get('limit', 50, type=int) or 1)
    rows, total = _message_repo.conversation(current_user.id, receiver_id, page=page, limit=limit)
    return success_response(rows, pagination=pagination(page, limit, total))


@chat_bp.route('/api/messages', methods=['POST'])
@api_login_required
@handle_api_errors
def api_send_message():
    allowed, retry_after = _send_limiter.is_allowed(
        f'chat:{current_user.id}', max_requests=60, window_seconds=60)
    if not allowed:
        return error_response(f'Too many messages. Try again in {retry_after} seconds.',
                              429, code='rate_limited')

    data, error = get_json_or_error()
    if error:
        return error
    receiver_id = data.get('receiver_id')
    content = (data.get('content') or '').strip()
    if not receiver_id or not content:
        return error_response('receiver_id and content are required', code='validation_error')
    if len(content) > MAX_MESSAGE_LENGTH:
        return error_response(f'Message exceeds {MAX_MESSAGE_LENGTH} characters',
                              code='validation_error')
    if not _user_repo.get_by_id(receiver_id):
        return error_response('Receiver not found', 404, code='not_found')

    message = _message_repo.send(current_user.id, receiver_id, content)
    fire('chat.message_sent', {
        'message_id': message['id'], 'sender_id': current_user.id, 'receiver_id': receiver_id,
    })
    return success_response(message, 201)


@chat_bp.route('/api/messages/feed', methods=['GET'])
@api_login_required
@handle_api_errors
def api_message_feed():
    """Poll for messages newer than ?cursor=."""
    return success_response(_feed.poll(current_user.id, request.args.get('cursor')))


@chat_bp.route('/api/messages/read', methods=['POST'])
@api_login_required
@handle_api_errors
def api_mark_read():
    data = request.get_json(silent=True) or {}
    updated = _message_repo.mark_read(
        current_user.id,
        sender_id=data.get('sender_id'),
        message_ids=data.get('message_ids'),
    )
    return success_response({'updated': updated})
