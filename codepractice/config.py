import os


class BaseConfig:
    """Base configuration shared across all environments."""

    # Flask core
    SECRET_KEY = os.environ.get('SECRET_KEY', 'fallback-secret-key-change-me')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Database (persisted code drafts)
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        'SQLALCHEMY_DATABASE_URI', 'sqlite:///dev.db'
    )

    # Practice backend API
    PRACTICE_API_URL = os.environ.get(
        'PRACTICE_API_URL', 'http://localhost:8080/api'
    )
    PRACTICE_API_TIMEOUT = float(os.environ.get('PRACTICE_API_TIMEOUT', '60'))
    PRACTICE_API_MAX_RETRIES = int(os.environ.get('PRACTICE_API_MAX_RETRIES', '3'))
    PRACTICE_DEFAULT_LANGUAGE = os.environ.get('PRACTICE_DEFAULT_LANGUAGE', 'cpp')

    # Draft storage: sql | memory | file
    DRAFT_STORAGE = os.environ.get('DRAFT_STORAGE', 'sql')
    DRAFT_STORAGE_PATH = os.environ.get('DRAFT_STORAGE_PATH', '')

    # Max seconds a request thread waits on the session loop
    SESSION_CALL_TIMEOUT = float(os.environ.get('SESSION_CALL_TIMEOUT', '120'))
    # Sessions untouched this long are closed; 0 disables
    SESSION_IDLE_TIMEOUT = float(os.environ.get('SESSION_IDLE_TIMEOUT', '1800'))
    # Least recently used sessions are closed beyond this many; 0 disables
    SESSION_MAX_OPEN = int(os.environ.get('SESSION_MAX_OPEN', '1000'))

    # Where the browser is sent when the backend rejects the credential
    LOGIN_URL = os.environ.get('LOGIN_URL', '/auth/login')

    # Logging
    LOG_FILE_MAX_BYTES = int(os.environ.get('LOG_FILE_MAX_BYTES', '0'))
    LOG_FILE_BACKUP_COUNT = int(os.environ.get('LOG_FILE_BACKUP_COUNT', '3'))


class DevelopmentConfig(BaseConfig):
    """Development environment configuration."""

    DEBUG = True
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        'SQLALCHEMY_DATABASE_URI', 'sqlite:///dev.db'
    )


class ProductionConfig(BaseConfig):
    """Production environment configuration."""

    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        'SQLALCHEMY_DATABASE_URI', 'sqlite:///prod.db'
    )
    LOG_FILE_MAX_BYTES = int(os.environ.get('LOG_FILE_MAX_BYTES', str(10 * 1024 * 1024)))


class TestingConfig(BaseConfig):
    """Testing environment configuration."""

    TESTING = True
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SECRET_KEY = 'test-secret-key'
    SERVER_NAME = 'localhost'
    PRACTICE_API_URL = 'http://backend.test/api'
    PRACTICE_API_MAX_RETRIES = 1
    DRAFT_STORAGE = 'memory'
    SESSION_CALL_TIMEOUT = 10.0
    LOG_FILE_MAX_BYTES = 0


config_map = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
}
