"""Auth module routes.

Session login/logout, current-user info, password change, and the admin-only
user management endpoints.
"""
from flask import request
from flask_login import login_user, logout_user, current_user

from . import auth_bp
from .models import User
from .repositories import UserRepository, EventRepository
from .services import UserService
from core.utils.api_helpers import (
    admin_required, api_login_required, error_response, get_json_or_error,
    handle_api_errors, success_response, RateLimiter,
)

_user_repo = UserRepository()
_event_repo = EventRepository()
_user_service = UserService()
_auth_limiter = RateLimiter()


def _log_event(event_type, description=None, entity_type=None, entity_id=None, details=None):
    """Log user event with current user info."""
    user_id = current_user.id if current_user.is_authenticated else None
    user_email = current_user.email if current_user.is_authenticated else None
    _event_repo.log_event(
        event_type=event_type,
        event_description=description,
        user_id=user_id,
        user_email=user_email,
        entity_type=entity_type,
        entity_id=entity_id,
        ip_address=request.remote_addr,
        user_agent=request.headers.get('User-Agent', '')[:500],
        details=details
    )


# ============== AUTHENTICATION ROUTES ==============

@auth_bp.route('/login', methods=['POST'])
@auth_bp.route('/api/auth/login', methods=['POST'])
def api_login():
    """Email + password login. Starts a Flask-Login session."""
    allowed, retry_after = _auth_limiter.is_allowed(
        f'login:{request.remote_addr}', max_requests=10, window_seconds=300)
    if not allowed:
        return error_response(f'Too many login attempts. Try again in {retry_after} seconds.',
                              429, code='rate_limited')

    data, error = get_json_or_error()
    if error:
        return error
    email = (data.get('email') or '').strip()
    password = data.get('password') or ''
    if not email or not password:
        return error_response('Please enter both email and password.', code='validation_error')

    user_data = _user_repo.authenticate(email, password)
    if not user_data:
        _log_event('login_failed', f'Failed login attempt for {email}')
        return error_response('Invalid email or password.', 401, code='unauthorized')

    user = User(user_data)
    login_user(user, remember=bool(data.get('remember')))
    _user_repo.update_last_login(user.id)
    _log_event('login', f'User {email} logged in')
    return success_response(user.to_dict())


@auth_bp.route('/logout', methods=['POST'])
@auth_bp.route('/api/auth/logout', methods=['POST'])
@api_login_required
def api_logout():
    _log_event('logout', f'User {current_user.email} logged out')
    logout_user()
    return success_response(None)


@auth_bp.route('/api/auth/current-user')
def api_current_user():
    """Get current user info for UI."""
    if current_user.is_authenticated:
        return success_response(current_user.to_dict(), authenticated=True)
    return success_response(None, authenticated=False)


@auth_bp.route('/api/auth/change-password', methods=['POST'])
@api_login_required
@handle_api_errors
def api_change_password():
    """Change current user's password."""
    data, error = get_json_or_error()
    if error:
        return error
    _user_service.change_password(
        current_user.id, current_user.email,
        data.get('current_password', ''), data.get('new_password', ''))
    _log_event('password_changed', 'User changed their password')
    return success_response(None, message='Password changed successfully')


@auth_bp.route('/api/heartbeat', methods=['POST'])
@api_login_required
def api_heartbeat():
    """Update user's last_seen timestamp (called periodically by frontend)."""
    _user_repo.update_last_seen(current_user.id)
    return success_response(None)


# ============== USER MANAGEMENT ==============

@auth_bp.route('/api/users', methods=['GET'])
@admin_required
@handle_api_errors
def api_get_users():
    """Get all users."""
    return success_response(_user_service.list_users())


@auth_bp.route('/api/users/<int:user_id>', methods=['GET'])
@admin_required
@handle_api_errors
def api_get_user(user_id):
    return success_response(_user_service.get_user(user_id))


@auth_bp.route('/api/users', methods=['POST'])
@admin_required
@handle_api_errors
def api_create_user():
    """Create a new user (account + profile)."""
    data, error = get_json_or_error()
    if error:
        return error
    profile = _user_service.create_user(
        email=data.get('email'),
        password=data.get('password'),
        role=data.get('role'),
        username=data.get('username'),
        actor_id=current_user.id,
    )
    return success_response(profile, 201)


@auth_bp.route('/api/users/<int:user_id>', methods=['PATCH'])
@admin_required
@handle_api_errors
def api_update_user(user_id):
    """Update a user. Admin targets are refused with 403."""
    data, error = get_json_or_error()
    if error:
        return error
    changes = {k: data[k] for k in ('username', 'email', 'role', 'status') if k in data}
    updated = _user_service.update_user(
        user_id, changes, actor_id=current_user.id,
        ip_address=request.headers.get('X-Forwarded-For') or request.remote_addr,
        user_agent=request.headers.get('User-Agent', '')[:500],
    )
    return success_response(updated)


@auth_bp.route('/api/users/<int:user_id>', methods=['DELETE'])
@admin_required
@handle_api_errors
def api_delete_user(user_id):
    """Delete a user. Admin targets are refused with 403."""
    _user_service.delete_user(user_id, actor_id=current_user.id)
    return success_response(None, message='User deleted successfully')


# ============== EVENT LOG ==============

@auth_bp.route('/api/audit-events', methods=['GET'])
@admin_required
def api_get_audit_events():
    """Get user events/audit log."""
    events = _event_repo.get_events(
        limit=min(request.args.get('limit', 100, type=int), 500),
        offset=request.args.get('offset', 0, type=int),
        user_id=request.args.get('user_id', type=int),
        event_type=request.args.get('event_type') or None,
        entity_type=request.args.get('entity_type') or None,
    )
    return success_response(events)
