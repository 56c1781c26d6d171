# config/settings.py
"""
Environment-specific application configuration

The factory in app.py picks one of these classes by name
('development', 'testing', 'production') and then applies
environment variable overrides on top.
"""

import os

from dotenv import load_dotenv

from config.security import SecurityConfig

load_dotenv()


class Config(SecurityConfig):
    """Base configuration shared by every environment"""

    VERSION = os.environ.get('APP_VERSION', '1.0.0')

    # Database
    DATABASE_URL = os.environ.get('DATABASE_URL', 'sqlite:///inkwell.db')
    DB_POOL_SIZE = 10
    DB_MAX_OVERFLOW = 20
    SLOW_QUERY_THRESHOLD = 1.0  # seconds

    # Session principal storage: 'memory' or 'redis'
    SESSION_BACKEND = os.environ.get('SESSION_BACKEND', 'memory')
    REDIS_URL = os.environ.get('REDIS_URL', 'redis://localhost:6379/0')

    # Feedback messages across redirects: 'query' or 'flash'
    FEEDBACK_TRANSPORT = os.environ.get('FEEDBACK_TRANSPORT', 'query')

    # Blog listing
    POSTS_PER_PAGE = 5
    DEFAULT_SORT_FIELD = 'title'
    SORTABLE_FIELDS = ('title', 'body', 'created_at', 'updated_at')
    MAX_TITLE_LENGTH = 200

    # Only the owner may edit or delete a post
    ENFORCE_POST_OWNERSHIP = True

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_FILE = os.environ.get('LOG_FILE')
    SLOW_REQUEST_THRESHOLD = 1000  # milliseconds


class DevelopmentConfig(Config):
    """Local development"""

    DEBUG = True
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'DEBUG')
    SESSION_COOKIE_SECURE = False


class TestingConfig(Config):
    """Test suite: in-memory database, no CSRF, memory sessions"""

    TESTING = True
    SECRET_KEY = 'testing-secret-key'
    DATABASE_URL = 'sqlite://'
    SESSION_BACKEND = 'memory'
    FEEDBACK_TRANSPORT = 'query'
    SESSION_COOKIE_SECURE = False
    WTF_CSRF_ENABLED = False
    PASSWORD_HASH_ITERATIONS = 1000
    LOG_LEVEL = 'WARNING'


class ProductionConfig(Config):
    """Production deployment behind a reverse proxy"""

    SESSION_BACKEND = os.environ.get('SESSION_BACKEND', 'redis')


CONFIGS = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
}


def get_config(config_name: str = None):
    """Return the configuration class for an environment name"""
    config_name = config_name or os.environ.get('FLASK_ENV', 'production')
    return CONFIGS.get(config_name, ProductionConfig)
