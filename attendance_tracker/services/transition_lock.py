"""Serialization of subject transitions.

Only one transition may run at a time. With ``REDIS_URL`` configured the lock
lives in Redis so every worker process shares it; otherwise a process-local
lock is used.
"""
import logging
import threading
from contextlib import contextmanager
from flask import Flask, current_app
import redis
from attendance_tracker.exceptions import TransitionInProgress

logger = logging.getLogger(__name__)

LOCK_NAME = 'attendance-tracker:subject-transition'

class LocalTransitionLock:
    """Process-local transition lock."""

    def __init__(self):
        self._lock = threading.Lock()

    @contextmanager
    def hold(self):
        if not self._lock.acquire(blocking=False):
            raise TransitionInProgress()
        try:
            yield
        finally:
            self._lock.release()

    def locked(self) -> bool:
        return self._lock.locked()

class RedisTransitionLock:
    """Transition lock shared through Redis."""

    def __init__(self, client: redis.Redis, timeout: int):
        self._client = client
        self._timeout = timeout

    @contextmanager
    def hold(self):
        lock = self._client.lock(LOCK_NAME, timeout=self._timeout, blocking=False)
        if not lock.acquire(blocking=False):
            raise TransitionInProgress()
        try:
            yield
        finally:
            try:
                lock.release()
            except redis.exceptions.LockError:
                # Expired while held; the next transition may already own it
                logger.warning("Transition lock expired before release")

    def locked(self) -> bool:
        return bool(self._client.exists(LOCK_NAME))

def create_transition_lock(app: Flask):
    """Build the lock backend for an application."""
    redis_url = app.config.get('REDIS_URL')
    if redis_url:
        client = redis.Redis.from_url(redis_url)
        return RedisTransitionLock(client, app.config.get('TRANSITION_LOCK_TIMEOUT_SECONDS', 120))
    return LocalTransitionLock()

def get_transition_lock():
    lock = current_app.extensions.get('transition_lock')
    if lock is None:
        lock = current_app.extensions['transition_lock'] = create_transition_lock(current_app)
    return lock
