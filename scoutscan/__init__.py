"""
Flask application factory.

Creates and configures the Flask app, registers all blueprints, and holds the
session factory and scan queue in app.extensions['scoutscan'] so routes never
reach for module-level clients.
"""
import logging

from flask import Flask, g, jsonify, request
from werkzeug.exceptions import HTTPException

from scoutscan.errors import AuthError, ScoutScanError

logger = logging.getLogger('scoutscan.app')

OPEN_PATHS = {'/health'}


def create_app(session_factory=None, scan_queue=None):
    """
    Create and configure the Flask application.

    Args:
        session_factory: sessionmaker for the app's database. Built from
                         DATABASE_URL when omitted.
        scan_queue:      object with an RQ-style enqueue(). The Redis-backed
                         'scans' queue is used when omitted (connected lazily).
    """
    from scoutscan import config
    from scoutscan.database import import_models, session_factory_from_url
    from scoutscan.logging_config import configure_logging

    app = Flask(__name__)
    configure_logging(app)

    # Import models so Base.metadata knows about them (required for SQLAlchemy).
    # Schema is managed by Alembic — no create_all() call.
    import_models()

    app.extensions['scoutscan'] = {
        'session_factory': session_factory or session_factory_from_url(config.DATABASE_URL),
        'scan_queue': scan_queue,
    }

    # ── Bearer token auth ───────────────────────────────────────────────
    @app.before_request
    def require_token():
        if request.path in OPEN_PATHS:
            return
        header = request.headers.get('Authorization', '')
        if not header.startswith('Bearer ') or not header[len('Bearer '):].strip():
            raise AuthError('Missing bearer token', status_code=401)
        token = header[len('Bearer '):].strip()
        if config.API_TOKEN and token != config.API_TOKEN:
            raise AuthError('Invalid token', status_code=403)
        g.user_id = request.headers.get('X-User-Id', '').strip() or 'anonymous'

    # ── Error envelope ──────────────────────────────────────────────────
    @app.errorhandler(ScoutScanError)
    def handle_scoutscan_error(e):
        if e.status_code >= 500:
            logger.error("%s: %s", e.__class__.__name__, e, exc_info=True)
        return jsonify({'success': False, 'error': str(e)}), e.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({'success': False, 'error': e.description}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        logger.error("Unhandled error on %s %s", request.method, request.path, exc_info=True)
        return jsonify({'success': False, 'error': 'Internal server error'}), 500

    # Register blueprints
    from scoutscan.routes.health import bp as health_bp
    from scoutscan.routes.scans import bp as scans_bp
    from scoutscan.routes.queue import bp as queue_bp
    from scoutscan.routes.scoring import bp as scoring_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(scans_bp)
    app.register_blueprint(queue_bp)
    app.register_blueprint(scoring_bp)

    return app


def get_session_factory():
    from flask import current_app
    return current_app.extensions['scoutscan']['session_factory']


def get_app_scan_queue():
    from flask import current_app
    queue = current_app.extensions['scoutscan']['scan_queue']
    if queue is None:
        from scoutscan.extensions import get_scan_queue
        queue = get_scan_queue()
    return queue
