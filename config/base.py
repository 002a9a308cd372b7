"""Base configuration shared by every environment."""
import os


class Config:
    """Base configuration."""
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = False

    # CORS
    CORS_ORIGINS = ["http://localhost:*", "http://127.0.0.1:*"]

    # Rate Limiting
    RATELIMIT_ENABLED = True
    RATELIMIT_STORAGE_URI = os.environ.get('REDIS_URL') or 'memory://'
    RATELIMIT_DEFAULT = "2000 per hour"
    DETECTION_RATE_LIMIT = "120 per minute"

    # Redis backs the subject transition lock when configured
    REDIS_URL = os.environ.get('REDIS_URL') or None

    # Session engine
    DEFAULT_BREAK_SECONDS = 600
    MIN_ATTENDANCE_PERCENTAGE = 75
    SESSION_TICK_SECONDS = 1
    SESSION_SYNC_INTERVAL_SECONDS = 15
    AUTO_ADJUST_INTERVAL_SECONDS = 15
    ATTENDANCE_DAY_INTERVAL_SECONDS = 60
    TRANSITION_LOCK_TIMEOUT_SECONDS = 120
    TRANSITION_RETRIES = 2
    SCHEDULER_ENABLED = False

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_FILE = 'logs/app.log'
