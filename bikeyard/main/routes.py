"""
bikeyard/main/routes.py
───────────────────────
Service banner and health check. Both are unauthenticated.
"""
from datetime import datetime, timezone

from flask import current_app, jsonify

from bikeyard.main import main
from bikeyard.services import get_services
from bikeyard.services.documents import StoreError


@main.route('/')
def index():
    prefix = current_app.config['API_PREFIX']
    return jsonify({
        'status': 'OK',
        'message': 'Bike Management API',
        'endpoints': {
            'health':    '/health',
            'auth':      f'{prefix}/auth/login',
            'bikes':     f'{prefix}/bikes',
            'sales':     f'{prefix}/sales',
            'analytics': f'{prefix}/analytics',
            'users':     f'{prefix}/users',
            'upload':    f'{prefix}/upload',
        },
    })


@main.route('/health')
def health():
    """Health check for load balancers and monitoring."""
    status, details = 'OK', {}

    try:
        get_services().store.ping()
        details['db'] = 'ok'
    except StoreError as e:
        status = 'error'
        details['db'] = str(e)
        current_app.logger.error(f"Health check failed (DB): {e}")

    body = {
        'status': status,
        'message': 'Server is running' if status == 'OK' else 'Backing store unavailable',
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'details': details,
    }
    return jsonify(body), 200 if status == 'OK' else 503
