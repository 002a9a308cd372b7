"""Development configuration."""
import os

from .base import Config


class DevelopmentConfig(Config):
    """Development configuration class."""

    DEBUG = True
    TESTING = False

    SQLALCHEMY_DATABASE_URI = os.getenv('DEV_DATABASE_URL') or \
        'sqlite:///attendance_tracker_dev.db'
    SQLALCHEMY_ECHO = bool(int(os.getenv('SQLALCHEMY_ECHO', '0')))

    # Ticking and sweeps run in-process during development
    SCHEDULER_ENABLED = bool(int(os.getenv('SCHEDULER_ENABLED', '1')))

    LOG_LEVEL = 'DEBUG'
