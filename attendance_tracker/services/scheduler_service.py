"""Background jobs for the session engine."""
import atexit
import logging
from apscheduler.schedulers.background import BackgroundScheduler
from flask import Flask
from sqlalchemy.exc import SQLAlchemyError
from attendance_tracker import db

logger = logging.getLogger(__name__)

def _run_in_context(app: Flask, job, name: str):
    def runner():
        with app.app_context():
            try:
                job()
            except Exception as e:
                db.session.rollback()
                logger.error(f"Error in {name}: {e}", exc_info=True)
            finally:
                db.session.remove()
    return runner

def _tick():
    from attendance_tracker.services.session_engine import get_engine
    get_engine().tick()

def _flush():
    from attendance_tracker.services.session_engine import get_engine
    get_engine().flush()

def _sweep():
    from attendance_tracker.services.status_reconciler import StatusReconciler
    StatusReconciler.sweep_active()

def _ensure_today():
    from attendance_tracker.services.attendance_day_service import AttendanceDayService
    AttendanceDayService.ensure_today()

def start_scheduler(app: Flask) -> BackgroundScheduler:
    """Start the tick, flush, sweep and attendance-day jobs."""
    config = app.config
    jobs = [
        (_tick, 'session_tick', 'Advance live sessions', config['SESSION_TICK_SECONDS']),
        (_flush, 'session_flush', 'Persist break and render time', config['SESSION_SYNC_INTERVAL_SECONDS']),
        (_sweep, 'auto_adjust', 'Re-derive statuses of the active subject', config['AUTO_ADJUST_INTERVAL_SECONDS']),
        (_ensure_today, 'attendance_day', 'Create today\'s attendance day', config['ATTENDANCE_DAY_INTERVAL_SECONDS']),
    ]

    # Track whatever the database says is active before the first tick
    with app.app_context():
        try:
            app.extensions['session_engine'].load_active()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.warning(f"Session engine not loaded at startup: {e}")

    scheduler = BackgroundScheduler()
    for func, job_id, name, seconds in jobs:
        scheduler.add_job(
            func=_run_in_context(app, func, job_id),
            trigger="interval",
            seconds=seconds,
            id=job_id,
            name=name,
            max_instances=1,
            coalesce=True,
            replace_existing=True
        )

    scheduler.start()
    app.extensions['scheduler'] = scheduler
    logger.info("Session scheduler started")

    # Ensure scheduler shuts down when app exits
    atexit.register(lambda: scheduler.shutdown(wait=False))
    return scheduler
