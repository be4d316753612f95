import time
from datetime import datetime, timezone

from flask import Blueprint, jsonify, current_app
from werkzeug.exceptions import HTTPException

main = Blueprint('main', __name__)


def _timestamp():
    return datetime.now(timezone.utc).isoformat()


@main.route('/')
def index():
    return jsonify({
        'message': 'Escape room game server',
        'status': 'running',
        'version': current_app.config.get('APP_VERSION', '1.0.0'),
        'timestamp': _timestamp(),
    })


@main.route('/health')
def health():
    started_at = current_app.extensions.get('started_at', time.monotonic())
    return jsonify({
        'status': 'healthy',
        'uptime': round(time.monotonic() - started_at, 3),
        'timestamp': _timestamp(),
    })


@main.app_errorhandler(404)
def not_found(_error):
    return jsonify({'success': False, 'error': 'The requested resource was not found'}), 404


@main.app_errorhandler(Exception)
def internal_error(error):
    # Let werkzeug's own responses (405 and friends) through untouched
    if isinstance(error, HTTPException):
        return error
    current_app.logger.exception(f"[error] unhandled {type(error).__name__}: {error}")
    return jsonify({
        'success': False,
        'error': 'Internal server error',
        'message': str(error),
    }), 500
