import importlib
import logging
import os

from dotenv import load_dotenv
from flask import Flask, jsonify, request
from flask_cors import CORS
from flask_limiter.errors import RateLimitExceeded
from flask_security import Security, SQLAlchemyUserDatastore

# Load environment variables from .env file before the config classes read them
load_dotenv()

from backend.config import get_config
from backend.extensions import db, mail, limiter
from backend.utils.request_logger import RequestLogger

# Every model is registered with the mapper before a schema or service touches it
from backend.models import (  # noqa: F401
    role, user, profile, job, job_audit, bid, quote, invoice, chat, review,
    password_reset_token, availability, job_template,
)

logger = logging.getLogger(__name__)

# (module under backend.api, url prefix)
BLUEPRINTS = [
    ('user', '/api'),
    ('job', '/api'),
    ('bid', '/api'),
    ('quote', '/api'),
    ('invoice', '/api'),
    ('service_area', '/api'),
    ('chat', '/api'),
    ('review', '/api'),
    ('availability', '/api'),
    ('job_template', '/api'),
]


def configure_logging(app):
    logs_dir = app.config.get('LOGS_DIR')
    handlers = [logging.StreamHandler()]
    if logs_dir and not app.testing:
        os.makedirs(logs_dir, exist_ok=True)
        handlers.append(logging.FileHandler(os.path.join(logs_dir, 'app.log')))
    logging.basicConfig(
        level=getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
        handlers=handlers,
    )


def register_blueprints(app):
    for blueprint_name, prefix in BLUEPRINTS:
        module = importlib.import_module(f'backend.api.{blueprint_name}')
        app.register_blueprint(getattr(module, f'{blueprint_name}_bp'), url_prefix=prefix)
        logger.debug(f"Registered blueprint: {blueprint_name} with prefix: {prefix}")


def register_error_handlers(app):

    @app.errorhandler(400)
    def bad_request(error):
        logger.warning(f"400 Bad Request for {request.method} {request.path}: {error}")
        return jsonify({'error': 'Bad Request', 'message': str(error), 'path': request.path}), 400

    @app.errorhandler(401)
    def unauthorized(error):
        logger.warning(f"401 Unauthorized for {request.method} {request.path}")
        return jsonify({'error': 'Authentication required'}), 401

    @app.errorhandler(403)
    def forbidden(error):
        logger.warning(f"403 Forbidden for {request.method} {request.path}")
        return jsonify({'error': 'Access forbidden'}), 403

    @app.errorhandler(404)
    def not_found(error):
        logger.warning(f"404 error for path: {request.path}")
        return jsonify({'error': 'API endpoint not found', 'path': request.path}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'error': 'Method not allowed', 'path': request.path}), 405

    @app.errorhandler(RateLimitExceeded)
    def ratelimit_handler(e):
        logger.warning(f"Rate limit exceeded for {request.method} {request.path}")
        return jsonify({'error': 'Rate limit exceeded. Please try again later.'}), 429

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        logger.error(f"Unhandled exception for {request.method} {request.path}: {error}", exc_info=True)
        return jsonify({'error': 'Internal server error'}), 500


def create_app(config_class=None):
    """Application factory."""
    app = Flask(__name__)
    app.config.from_object(config_class or get_config())

    configure_logging(app)
    logger.info("Database: %s", "sqlite" if "sqlite" in (app.config.get("SQLALCHEMY_DATABASE_URI") or "") else "non-sqlite")

    db.init_app(app)
    mail.init_app(app)
    limiter.init_app(app)
    CORS(app, supports_credentials=True, resources={r"/api/*": {"origins": app.config.get('CORS_ORIGINS', [])}})

    from backend.models.role import Role
    from backend.models.user import User
    app.security = Security(app, SQLAlchemyUserDatastore(db, User, Role))
    # API clients get JSON instead of a redirect to a login page
    app.security.unauthn_handler(lambda *args, **kwargs: (jsonify({'error': 'Authentication required'}), 401))
    app.security.unauthz_handler(lambda *args, **kwargs: (jsonify({'error': 'Access forbidden'}), 403))

    register_blueprints(app)
    register_error_handlers(app)
    RequestLogger.init_app(app)

    @app.route('/')
    def root():
        return {'status': 'ok', 'message': 'Tradeboard backend API is running. Available endpoints: /api/*'}

    @app.route('/api/health-check')
    def health_check():
        healthy = db.health_check()
        return jsonify({'status': 'ok' if healthy else 'degraded', 'database': healthy}), 200 if healthy else 503

    return app


if __name__ == '__main__':
    app = create_app()
    with app.app_context():
        db.create_all()
    app.run(
        host=app.config.get('FLASK_HOST', '0.0.0.0'),
        port=app.config.get('FLASK_PORT', 5000),
        debug=app.config.get('DEBUG', False),
    )
