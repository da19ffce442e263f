import atexit
import logging
import os

from logging.handlers import RotatingFileHandler

from dotenv import load_dotenv
from flask import Flask, jsonify

from codepractice.config import config_map
from codepractice.extensions import db, migrate

__version__ = '0.1.0'


def create_app(config_name=None):
    """Application factory for creating the Flask app instance.

    Args:
        config_name: Configuration name ('development', 'production' or
                     'testing'). Defaults to FLASK_ENV or 'development'.

    Returns:
        Configured Flask application instance.
    """
    # Load environment variables from the appropriate .env file
    env = config_name or os.environ.get('FLASK_ENV', 'development')
    root_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    env_file = os.path.join(root_dir, f'.env.{env}')
    if os.path.exists(env_file):
        load_dotenv(env_file)

    # Also load a local .env if it exists (overrides the environment-specific one)
    dotenv_path = os.path.join(root_dir, '.env')
    if os.path.exists(dotenv_path):
        load_dotenv(dotenv_path, override=True)

    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'development')

    app = Flask(__name__)

    config_class = config_map.get(config_name, config_map['development'])
    app.config.from_object(config_class)

    _configure_logging(app)

    db.init_app(app)
    migrate.init_app(app, db)

    _init_session_registry(app)
    _register_blueprints(app)

    @app.route('/health')
    def health():
        return jsonify({'status': 'ok', 'version': __version__})

    # Create database tables if they don't exist
    with app.app_context():
        from codepractice import models  # noqa: F401
        db.create_all()

    return app


def _init_session_registry(app):
    """Attach the practice session registry to ``app.extensions``."""
    from codepractice.client import create_practice_api
    from codepractice.services.session_registry import (
        SessionRegistry,
        make_storage_factory,
    )

    registry = SessionRegistry(
        backend=create_practice_api(app.config),
        storage_factory=make_storage_factory(app),
        language=app.config.get('PRACTICE_DEFAULT_LANGUAGE', 'cpp'),
        call_timeout=app.config.get('SESSION_CALL_TIMEOUT', 120.0),
        idle_timeout=app.config.get('SESSION_IDLE_TIMEOUT', 1800.0),
        max_sessions=app.config.get('SESSION_MAX_OPEN', 1000),
    )
    app.extensions['practice_sessions'] = registry
    if not app.testing:
        atexit.register(registry.shutdown)


def _register_blueprints(app):
    """Register all application blueprints."""
    from codepractice.views.practice import practice_bp

    app.register_blueprint(practice_bp)


def _configure_logging(app):
    """Set up RotatingFileHandler on the root logger."""
    max_bytes = app.config.get('LOG_FILE_MAX_BYTES', 0)
    if not max_bytes:
        return

    log_dir = os.path.join(app.instance_path, 'logs')
    os.makedirs(log_dir, exist_ok=True)

    log_file = os.path.join(log_dir, 'app.log')
    handler = RotatingFileHandler(
        log_file,
        maxBytes=max_bytes,
        backupCount=app.config.get('LOG_FILE_BACKUP_COUNT', 3),
    )
    handler.setFormatter(logging.Formatter(
        app.config.get('LOG_FORMAT', '%(asctime)s [%(levelname)s] %(name)s: %(message)s')
    ))
    handler.setLevel(logging.DEBUG)

    root = logging.getLogger()
    root.addHandler(handler)
    if root.level == logging.WARNING:
        root.setLevel(logging.DEBUG)
