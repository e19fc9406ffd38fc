import os
from pathlib import Path


def _env_bool(name, default):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    """Base configuration - shared across all environments"""

    # Security
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-secret-key')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SECURITY_PASSWORD_SALT = os.environ.get('SECURITY_PASSWORD_SALT', 'dev-salt')

    # Flask-Security settings
    # Registration goes through /api/users/register so a profile is created with the user
    SECURITY_REGISTERABLE = False
    SECURITY_SEND_REGISTER_EMAIL = False
    SECURITY_PASSWORD_HASH = 'pbkdf2_sha512'
    SECURITY_TOKEN_AUTHENTICATION_HEADER = 'Authentication-Token'
    SECURITY_TOKEN_AUTHENTICATION_KEY = 'auth_token'
    # Password reset is served by PasswordResetService under /api/users
    SECURITY_RECOVERABLE = False
    SECURITY_CHANGEABLE = True
    SECURITY_CONFIRMABLE = False
    SECURITY_TRACKABLE = False
    SECURITY_API_ENABLED = True
    SECURITY_URL_PREFIX = "/api/auth"
    WTF_CSRF_ENABLED = False
    SECURITY_CSRF_PROTECT_MECHANISMS = []
    SECURITY_CSRF_IGNORE_UNAUTH_ENDPOINTS = True
    SESSION_COOKIE_HTTPONLY = True

    # JSON API configurations
    SECURITY_RENDER_AS_JSON = True
    SECURITY_JSON = True

    # Mail
    MAIL_SERVER = os.environ.get('MAIL_SERVER', 'localhost')
    MAIL_PORT = int(os.environ.get('MAIL_PORT', 25))
    MAIL_USE_TLS = _env_bool('MAIL_USE_TLS', False)
    MAIL_USERNAME = os.environ.get('MAIL_USERNAME')
    MAIL_PASSWORD = os.environ.get('MAIL_PASSWORD')
    MAIL_DEFAULT_SENDER = os.environ.get('MAIL_DEFAULT_SENDER', 'no-reply@tradeboard.local')
    NOTIFICATIONS_ENABLED = _env_bool('NOTIFICATIONS_ENABLED', True)

    # Rate limiting
    RATELIMIT_ENABLED = _env_bool('RATELIMIT_ENABLED', True)
    RATELIMIT_STORAGE_URI = os.environ.get('RATELIMIT_STORAGE_URI', 'memory://')

    # Marketplace rules
    MAX_SERVICE_AREAS = int(os.environ.get('MAX_SERVICE_AREAS', 1))
    DEFAULT_QUOTE_VALIDITY_DAYS = int(os.environ.get('DEFAULT_QUOTE_VALIDITY_DAYS', 30))
    DEFAULT_INVOICE_DUE_DAYS = int(os.environ.get('DEFAULT_INVOICE_DUE_DAYS', 30))
    DISPLAY_TIMEZONE = os.environ.get('DISPLAY_TIMEZONE', 'America/Halifax')

    # Password reset
    PASSWORD_RESET_TOKEN_HOURS = int(os.environ.get('PASSWORD_RESET_TOKEN_HOURS', 1))
    FRONTEND_URL = os.environ.get('FRONTEND_URL', 'http://localhost:3000')

    # App settings
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    BASE_DIR = os.path.dirname(os.path.abspath(__file__))
    LOGS_DIR = os.path.join(BASE_DIR, 'logs')
    CORS_ORIGINS = [
        origin.strip()
        for origin in os.environ.get('CORS_ORIGINS', 'http://localhost:3000,http://127.0.0.1:3000').split(',')
        if origin.strip()
    ]


class DevConfig(Config):
    """Development configuration"""
    DEBUG = True
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'DEBUG')
    SESSION_COOKIE_SAMESITE = 'Lax'
    SESSION_COOKIE_SECURE = False
    FLASK_HOST = '0.0.0.0'
    FLASK_PORT = 5000

    STORAGE_PATH = str(Path(__file__).resolve().parents[1] / "storage" / "database")
    DB_PATH = os.path.join(STORAGE_PATH, 'tradeboard.db')
    SQLALCHEMY_DATABASE_URI = os.environ.get('SQLALCHEMY_DATABASE_URI', f"sqlite:///{DB_PATH}")


class StagingConfig(Config):
    """Staging configuration"""
    DEBUG = False
    SESSION_COOKIE_SAMESITE = 'None'
    SESSION_COOKIE_SECURE = True
    FLASK_HOST = '::'
    FLASK_PORT = 5000

    # Staging database - MUST be set via environment
    SQLALCHEMY_DATABASE_URI = os.environ.get('SQLALCHEMY_DATABASE_URI')


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    SESSION_COOKIE_SAMESITE = 'None'
    SESSION_COOKIE_SECURE = True
    FLASK_HOST = '::'
    FLASK_PORT = 5000

    # Production database - MUST be set via environment
    SQLALCHEMY_DATABASE_URI = os.environ.get('SQLALCHEMY_DATABASE_URI')


class TestConfig(Config):
    """Test configuration: in-memory database, no mail, no rate limits"""
    TESTING = True
    DEBUG = False
    LOG_LEVEL = 'WARNING'
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SECURITY_PASSWORD_HASH = 'plaintext'
    MAIL_SUPPRESS_SEND = True
    NOTIFICATIONS_ENABLED = False
    RATELIMIT_ENABLED = False
    DISPLAY_TIMEZONE = 'America/Halifax'
    MAX_SERVICE_AREAS = 1
    FLASK_HOST = '127.0.0.1'
    FLASK_PORT = 5000


_CONFIGS = {
    'development': DevConfig,
    'staging': StagingConfig,
    'production': ProductionConfig,
    'testing': TestConfig,
}


def get_config(name=None):
    """Return the config class for ``name`` (defaults to $APP_ENV, then development)."""
    name = (name or os.environ.get('APP_ENV') or 'development').lower()
    try:
        return _CONFIGS[name]
    except KeyError:
        raise ValueError(f"Unknown configuration '{name}'. Expected one of: {', '.join(_CONFIGS)}")
