# app.py
"""
Flask Application Factory for the Inkwell multi-user blog

This application factory wires together:
- Environment-based configuration
- Logging for the app, SQL and request timing
- SQLAlchemy persistence with Flask-Migrate
- Server-side session principals (memory or Redis)
- CSRF protection and security headers
- The auth gate that protects every view not marked public
- Friendly error pages
"""

import logging
import logging.handlers
from datetime import datetime
from typing import Optional

import click
from flask import Flask, g, jsonify, render_template, request
from flask_migrate import Migrate
from flask_wtf.csrf import CSRFProtect
from sqlalchemy import event, text
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

from api.users import users_api_bp
from config.settings import get_config
from core.database_models import db
from core.security_manager import init_security_manager
from core.session_store import create_session_store
from middleware.security import auth_gate, public_route, security_headers
from routes.auth import auth_routes_bp
from routes.blogs import blogs_bp

migrate = Migrate()
csrf = CSRFProtect()


def setup_logging(app: Flask) -> None:
    """
    Configure application logging

    This setup provides:
    - A console handler with timestamps for every logger
    - An optional rotating file handler when LOG_FILE is set
    - Quieter werkzeug output outside debug mode
    """
    # Remove default Flask handlers to avoid duplicate logs
    app.logger.handlers.clear()

    console_formatter = logging.Formatter(
        fmt='%(asctime)s %(name)s %(levelname)s %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    detailed_formatter = logging.Formatter(
        fmt='%(asctime)s %(name)-20s %(levelname)-8s %(funcName)-15s:%(lineno)-4d %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    log_level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    if not any(getattr(h, 'inkwell_handler', False) for h in root_logger.handlers):
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(console_formatter)
        console_handler.inkwell_handler = True
        root_logger.addHandler(console_handler)

    app.logger.setLevel(log_level)
    app.logger.propagate = True

    log_file = app.config.get('LOG_FILE')
    if log_file:
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10*1024*1024,  # 10MB
            backupCount=5
        )
        file_handler.setFormatter(detailed_formatter)
        file_handler.setLevel(logging.DEBUG)
        app.logger.addHandler(file_handler)

    # Suppress verbose third-party logs in production
    if not app.debug:
        logging.getLogger('werkzeug').setLevel(logging.WARNING)


def configure_database(app: Flask) -> None:
    """
    Configure SQLAlchemy and migrations

    Pool sizing only applies to server databases; SQLite uses the
    Flask-SQLAlchemy defaults.
    """
    database_url = app.config.get('DATABASE_URL', 'sqlite:///inkwell.db')

    engine_options = {'pool_pre_ping': True}
    if not database_url.startswith('sqlite'):
        engine_options.update({
            'pool_size': app.config.get('DB_POOL_SIZE', 10),
            'max_overflow': app.config.get('DB_MAX_OVERFLOW', 20),
            'pool_recycle': 3600,
        })

    app.config['SQLALCHEMY_DATABASE_URI'] = database_url
    app.config['SQLALCHEMY_ENGINE_OPTIONS'] = engine_options
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False

    db.init_app(app)
    migrate.init_app(app, db)

    threshold = app.config.get('SLOW_QUERY_THRESHOLD', 1.0)

    with app.app_context():
        engine = db.engine

        @event.listens_for(engine, "before_cursor_execute")
        def receive_before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
            context._query_start_time = datetime.utcnow()

        @event.listens_for(engine, "after_cursor_execute")
        def receive_after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
            """Log slow queries"""
            total = (datetime.utcnow() - context._query_start_time).total_seconds()
            if total > threshold:
                app.logger.warning(f"Slow query ({total:.2f}s): {statement[:100]}...")

    app.logger.info(f"Database configured: {database_url.split('@')[-1]}")


def configure_security(app: Flask) -> None:
    """
    Configure password hashing, session principals and CSRF protection
    """
    init_security_manager(app)
    create_session_store(app)
    csrf.init_app(app)

    app.logger.info("Security features configured")


def register_blueprints(app: Flask) -> None:
    """
    Register all application blueprints
    """
    app.register_blueprint(blogs_bp)
    app.register_blueprint(auth_routes_bp)
    app.register_blueprint(users_api_bp)

    app.logger.info("Application blueprints registered")


def configure_error_handlers(app: Flask) -> None:
    """
    Render friendly error pages; internal details only go to the log
    """
    @app.errorhandler(404)
    def not_found(error):
        return render_template('error.html',
                               error='The page you are looking for does not exist.'), 404

    @app.errorhandler(500)
    def internal_error(error):
        app.logger.error(f"Internal server error: {error}", exc_info=True)
        return render_template('error.html',
                               error='Something went wrong. Please try again later.'), 500

    @app.errorhandler(SQLAlchemyError)
    def database_error(error):
        db.session.rollback()
        app.logger.error(f"Unhandled database error: {error}", exc_info=True)
        return render_template('error.html',
                               error='Internal server error. Please try again later.'), 500

    @app.errorhandler(Exception)
    def handle_exception(e):
        """Handle unexpected exceptions"""
        if isinstance(e, HTTPException):
            return e

        app.logger.error(f"Unhandled exception: {e}", exc_info=True)
        return render_template('error.html',
                               error='Something went wrong. Please try again later.'), 500


def configure_health_checks(app: Flask) -> None:
    """
    Health check endpoint for monitoring
    """
    @app.route('/health')
    @public_route
    def health_check():
        status = 'healthy'
        try:
            db.session.execute(text('SELECT 1'))
            database = 'healthy'
        except SQLAlchemyError as e:
            db.session.rollback()
            app.logger.warning(f"Health check database failure: {e}")
            database = 'unhealthy'
            status = 'unhealthy'

        return jsonify({
            'status': status,
            'timestamp': datetime.utcnow().isoformat(),
            'version': app.config.get('VERSION', '1.0.0'),
            'components': {'database': database}
        }), 200 if status == 'healthy' else 503


def configure_request_middleware(app: Flask) -> None:
    """
    Configure request/response middleware for access control and monitoring
    """
    @app.before_request
    def start_timer():
        g.start_time = datetime.utcnow()

    app.before_request(auth_gate)

    @app.after_request
    def after_request(response):
        response = security_headers(response)

        if hasattr(g, 'start_time'):
            duration = (datetime.utcnow() - g.start_time).total_seconds() * 1000
            if duration > app.config.get('SLOW_REQUEST_THRESHOLD', 1000):
                app.logger.warning(f"Slow request ({duration:.0f}ms): {request.method} {request.path}")

        return response


def register_commands(app: Flask) -> None:
    @app.cli.command('init-db')
    def init_db():
        """Create all tables"""
        db.create_all()
        click.echo('Database tables created')


def create_app(config_name: Optional[str] = None, **overrides) -> Flask:
    """
    Flask application factory

    Args:
        config_name: Configuration environment ('development', 'testing', 'production')
        overrides: Extra config values applied last

    Returns:
        Configured Flask application instance
    """
    app = Flask(__name__,
                static_folder='static',
                template_folder='templates')

    config_class = get_config(config_name)
    app.config.from_object(config_class)
    app.config.update(overrides)

    if config_class.__name__ == 'ProductionConfig':
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    setup_logging(app)
    app.logger.info(f"Starting Inkwell with {config_class.__name__}")

    configure_database(app)
    configure_security(app)
    register_blueprints(app)
    configure_error_handlers(app)
    configure_health_checks(app)
    configure_request_middleware(app)
    register_commands(app)

    # Production schemas come from migrations
    if app.config.get('DEBUG') or app.config.get('TESTING'):
        with app.app_context():
            db.create_all()
            app.logger.info("Database tables created")

    app.logger.info("Flask application factory completed successfully")
    return app
