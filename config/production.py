"""Production configuration."""
import os

from .base import Config


class ProductionConfig(Config):
    """Production configuration class."""

    DEBUG = False
    TESTING = False
    SECRET_KEY = os.getenv('SECRET_KEY')  # Must be set in production

    # Database
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL')

    # Redis (required so every worker shares one transition lock)
    REDIS_URL = os.getenv('REDIS_URL')
    RATELIMIT_STORAGE_URI = os.getenv('REDIS_URL') or 'memory://'

    CORS_ORIGINS = [origin for origin in os.getenv('CORS_ORIGINS', '*').split(',') if origin]

    # Set to 0 on every worker but one; a single process owns the ticking scheduler
    SCHEDULER_ENABLED = bool(int(os.getenv('SCHEDULER_ENABLED', '1')))

    # Logging
    LOG_LEVEL = 'INFO'
    LOG_FILE = os.getenv('LOG_FILE', 'logs/app.log')
