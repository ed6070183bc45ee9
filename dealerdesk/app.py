import sys
import os
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import time
from datetime import timedelta

from flask import Flask, request, jsonify

# Structured logging
from core.utils.logging_config import setup_logging, get_logger
logger = setup_logging(level=os.environ.get('LOG_LEVEL', 'INFO'))
app_logger = get_logger('dealerdesk.app')
app_logger.info('DealerDesk app module loading...')
from flask_compress import Compress
from flask_login import LoginManager
from core.auth.models import User
from core.auth.repositories import UserRepository
from database import ping_db, init_db

_user_repo = UserRepository()


app = Flask(__name__)

# Secret key - required in production, dev fallback only when FLASK_DEBUG=true
_secret_key = os.environ.get('FLASK_SECRET_KEY', os.environ.get('SECRET_KEY'))
if not _secret_key:
    if os.environ.get('FLASK_DEBUG', 'false').lower() == 'true':
        _secret_key = 'dev-secret-key-for-local-only'
        app_logger.warning('Using development secret key - set FLASK_SECRET_KEY for production')
    else:
        raise RuntimeError('FLASK_SECRET_KEY environment variable is required')
app.secret_key = _secret_key

compress = Compress()
compress.init_app(app)

login_manager = LoginManager()
login_manager.init_app(app)

app.config['REMEMBER_COOKIE_DURATION'] = timedelta(days=30)
app.config['REMEMBER_COOKIE_SECURE'] = True
app.config['REMEMBER_COOKIE_HTTPONLY'] = True
app.config['REMEMBER_COOKIE_SAMESITE'] = 'Lax'

app.config['SESSION_COOKIE_SECURE'] = True
app.config['SESSION_COOKIE_HTTPONLY'] = True
app.config['SESSION_COOKIE_SAMESITE'] = 'Lax'

# ============== Blueprint Registrations ==============

from core.auth import auth_bp
app.register_blueprint(auth_bp)

from inventory import inventory_bp
app.register_blueprint(inventory_bp)

from arb import arb_bp
app.register_blueprint(arb_bp)

from planning import planning_bp
app.register_blueprint(planning_bp)

from chat import chat_bp
app.register_blueprint(chat_bp)

from reports import reports_bp
app.register_blueprint(reports_bp)

app_logger.info(f'DealerDesk startup complete - {len(app.url_map._rules)} routes registered')

# ============== Schema ==============

if not os.environ.get('TESTING'):
    init_db()

# ============== Global Error Handlers ==============

@app.errorhandler(404)
def handle_404(e):
    return jsonify({'success': False, 'error': 'Not found', 'code': 'not_found'}), 404

@app.errorhandler(405)
def handle_405(e):
    return jsonify({'success': False, 'error': 'Method not allowed', 'code': 'method_not_allowed'}), 405

@app.errorhandler(500)
def handle_500(e):
    app_logger.exception(f'Unhandled 500 error on {request.path}')
    return jsonify({'success': False, 'error': 'An internal error occurred', 'code': 'internal'}), 500


# ============== Flask-Login ==============

_user_cache = {}
_USER_CACHE_TTL = 60  # seconds

@login_manager.user_loader
def load_user(user_id):
    """Load user by ID for Flask-Login (cached per-worker, 60s TTL)."""
    uid = int(user_id)
    now = time.time()
    cached = _user_cache.get(uid)
    if cached and (now - cached[1]) < _USER_CACHE_TTL:
        return cached[0]

    user_data = _user_repo.get_by_id(uid)
    if user_data:
        user = User(user_data)
        _user_cache[uid] = (user, now)
        return user
    _user_cache.pop(uid, None)
    return None


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({'success': False, 'error': 'Authentication required', 'code': 'unauthorized'}), 401


@app.route('/health')
def health_check():
    """Health check for the orchestrator. Only checks DB connectivity."""
    checks = {}
    try:
        checks['database'] = ping_db()
    except Exception as e:
        checks['database'] = False
        app_logger.error(f'Health check - database failed: {e}')

    status = 'healthy' if checks.get('database') else 'unhealthy'
    return jsonify({
        'status': status,
        'checks': checks,
        'service': 'dealerdesk',
    }), 200 if status == 'healthy' else 503


if __name__ == '__main__':
    debug = os.environ.get('FLASK_DEBUG', 'false').lower() == 'true'
    port = int(os.environ.get('PORT', 5000))
    app.run(debug=debug, host='0.0.0.0', port=port)
