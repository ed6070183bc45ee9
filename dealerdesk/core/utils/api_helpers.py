"""Shared API utilities: decorators, error helpers, rate limiter, request validation.

Every JSON error body has the shape {success: False, error, code?, details?}.
"""
import time
import logging
from collections import defaultdict
from datetime import datetime
from functools import wraps

from flask import jsonify, request
from flask_login import current_user

from core.exceptions import DealerDeskError, ValidationError

logger = logging.getLogger('dealerdesk.api')


# ============== Decorators ==============

def admin_required(f):
    """Decorator requiring authentication + admin role.

    Replaces the inline pattern:
        if not current_user.is_admin:
            return jsonify({'success': False, 'error': 'Permission denied'}), 403
    """
    @wraps(f)
    def decorated(*args, **kwargs):
        if not current_user.is_authenticated:
            return error_response('Authentication required', 401, code='unauthorized')
        if not current_user.is_admin:
            return error_response('Forbidden - Admin access required', 403, code='forbidden')
        return f(*args, **kwargs)
    return decorated


def api_login_required(f):
    """Like @login_required but returns JSON 401 instead of redirect."""
    @wraps(f)
    def decorated(*args, **kwargs):
        if not current_user.is_authenticated:
            return error_response('Authentication required', 401, code='unauthorized')
        return f(*args, **kwargs)
    return decorated


def handle_api_errors(f):
    """Map DealerDeskError subclasses raised by services to JSON responses.

    Anything else is logged and returned as a generic 500.
    """
    @wraps(f)
    def decorated(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except DealerDeskError as e:
            if e.http_status >= 500:
                logger.exception(f'{request.method} {request.path} failed: {e}')
            return error_response(e.message, e.http_status, code=e.code, details=e.details)
        except Exception as e:
            return safe_error_response(e)
    return decorated


# ============== Request Validation ==============

def get_json_or_error():
    """Get JSON from request body with null check.

    Returns (data, error_response) tuple. Caller pattern:
        data, error = get_json_or_error()
        if error:
            return error
    """
    data = request.get_json(silent=True)
    if data is None or not isinstance(data, dict):
        return None, error_response('Invalid or missing JSON body', 400, code='validation_error')
    return data, None


def parse_date(value, field: str) -> str:
    """Accept YYYY-MM-DD only. Raises ValidationError otherwise."""
    if not isinstance(value, str):
        raise ValidationError(f'{field} must be a YYYY-MM-DD date', details={'field': field})
    try:
        datetime.strptime(value, '%Y-%m-%d')
    except ValueError:
        raise ValidationError(f'{field} must be a YYYY-MM-DD date', details={'field': field})
    return value


def parse_time(value, field: str) -> str:
    """Accept HH:MM or HH:MM:SS (24h). Raises ValidationError otherwise."""
    if isinstance(value, str):
        for fmt in ('%H:%M', '%H:%M:%S'):
            try:
                datetime.strptime(value, fmt)
                return value
            except ValueError:
                continue
    raise ValidationError(f'{field} must be an HH:MM time', details={'field': field})


# ============== Responses ==============

def success_response(data=None, status_code=200, **extra):
    """Wrap a payload as {success: True, data: ...}."""
    body = {'success': True, 'data': data}
    body.update(extra)
    return jsonify(body), status_code


def pagination(page, limit, total):
    """Pagination envelope for list responses. page/limit must already be >= 1."""
    return {
        'page': page,
        'limit': limit,
        'total': total,
        'pages': -(-total // limit),
    }


def error_response(message, status_code=400, code=None, details=None):
    """Build a JSON error response."""
    body = {'success': False, 'error': message}
    if code:
        body['code'] = code
    if details is not None:
        body['details'] = details
    return jsonify(body), status_code


def safe_error_response(e, status_code=500):
    """Return error response without leaking DB internals.

    - ValueError/KeyError: returns str(e) as 400 (business validation, safe to expose)
    - Everything else: logs full exception, returns generic message
    """
    if isinstance(e, (ValueError, KeyError)):
        return error_response(str(e), 400, code='validation_error')

    logger.exception('Unhandled error in API route')
    return error_response('An internal error occurred', status_code, code='internal')


# ============== Rate Limiter ==============

class RateLimiter:
    """Simple in-memory rate limiter.

    Per-worker state, fine for an internal back office.
    """

    def __init__(self):
        self._requests = defaultdict(list)

    def is_allowed(self, key, max_requests=10, window_seconds=60):
        """Check if request is allowed.

        Args:
            key: String identifier (user_id, IP address, etc.)
            max_requests: Max requests per window
            window_seconds: Window duration in seconds

        Returns:
            (is_allowed: bool, retry_after: int) tuple
        """
        now = time.time()
        window_start = now - window_seconds

        self._requests[key] = [ts for ts in self._requests[key] if ts > window_start]

        if len(self._requests[key]) >= max_requests:
            oldest = min(self._requests[key])
            retry_after = int(oldest + window_seconds - now) + 1
            return False, max(1, retry_after)

        self._requests[key].append(now)
        return True, 0
