# Initialize structured logging before anything else logs
from cinesocial.logging_config import get_logger, configure_structlog
configure_structlog()

import os
import time

from flask import Flask, Response, jsonify, request
from werkzeug.exceptions import HTTPException

from cinesocial.errors import ActivityError
from cinesocial.logging_middleware import init_logging_middleware
from cinesocial.metrics import get_metrics, http_requests_total, http_request_duration_seconds
from cinesocial.models import db
from cinesocial.routes.activity import likes_bp, watched_bp, watchlist_bp
from cinesocial.routes.movies import bp as movies_bp
from cinesocial.routes.reviews import bp as reviews_bp
from cinesocial.routes.users import bp as users_bp

logger = get_logger(__name__)

# Project root (parent of the cinesocial package)
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def _default_database_url():
    return os.getenv('DATABASE_URL') or 'sqlite:///' + os.path.join(BASE_DIR, 'cinesocial.db')


def register_error_handlers(app):
    @app.errorhandler(ActivityError)
    def handle_activity_error(error):
        if error.status_code >= 500:
            logger.error("request_error", error_type=error.kind.value, error=error.message, **error.context)
        else:
            logger.info("request_rejected", error_type=error.kind.value, error=error.message, **error.context)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        if isinstance(error, HTTPException):
            return error
        db.session.rollback()
        logger.error(
            "unhandled_error",
            method=request.method,
            path=request.path,
            view_args=request.view_args,
            error=str(error),
            exc_info=True,
        )
        return jsonify({
            "status": "error",
            "error": "An error occurred while processing your request."
        }), 500


def register_metrics(app):
    @app.before_request
    def before_request_metrics():
        request._start_time = time.time()

    @app.after_request
    def after_request_metrics(response):
        if hasattr(request, '_start_time'):
            duration = time.time() - request._start_time
            endpoint = request.endpoint or request.path
            http_requests_total.labels(method=request.method, endpoint=endpoint, status=response.status_code).inc()
            http_request_duration_seconds.labels(method=request.method, endpoint=endpoint).observe(duration)
        return response


def create_app(config=None):
    """
    Build the Flask application.

    Args:
        config: Optional mapping applied over the environment-derived config
                (tests pass an in-memory SQLite URI here)
    """
    app = Flask(__name__)

    app.config['SECRET_KEY'] = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    app.config['SQLALCHEMY_DATABASE_URI'] = _default_database_url()
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    if config:
        app.config.update(config)

    init_logging_middleware(app)
    register_metrics(app)
    register_error_handlers(app)

    db.init_app(app)

    app.register_blueprint(likes_bp, url_prefix="/api/likes")
    app.register_blueprint(watched_bp, url_prefix="/api/watched")
    app.register_blueprint(watchlist_bp, url_prefix="/api/watchlist")
    app.register_blueprint(reviews_bp, url_prefix="/api/reviews")
    app.register_blueprint(movies_bp, url_prefix="/api/movies")
    app.register_blueprint(users_bp, url_prefix="/api/users")

    @app.route('/health')
    def health():
        return jsonify({"status": "healthy", "service": "cinesocial"}), 200

    @app.route('/api/metrics')
    def metrics():
        """Prometheus metrics in text format. Aggregates only; no user data."""
        metrics_text, content_type = get_metrics()
        return Response(metrics_text, mimetype=content_type)

    with app.app_context():
        try:
            db.create_all()
            logger.info("database_initialized", message="Database tables initialized successfully")
        except Exception as e:
            logger.error("database_init_failed", error=str(e))
            raise

    return app
