"""Classroom Attendance Tracker - Application Factory."""
import logging
import os
from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

# Initialize extensions
db = SQLAlchemy()
migrate = Migrate()
limiter = Limiter(key_func=get_remote_address)

def create_app(config_name: str = None) -> Flask:
    """Application factory pattern."""
    app = Flask(__name__)

    # Load configuration
    from config import get_config
    config_class = get_config(config_name)
    app.config.from_object(config_class)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)

    # Configure CORS
    CORS(app, origins=app.config.get('CORS_ORIGINS', ["*"]))

    # Setup logging
    setup_logging(app)

    # Register blueprints
    register_blueprints(app)

    # Register error handlers
    register_error_handlers(app)

    # Setup database
    setup_database(app)

    # Session engine, transition lock and background jobs
    setup_engine(app)

    # Add CLI commands
    register_commands(app)

    # Add health check
    @app.route('/health')
    def health_check():
        return jsonify({
            'status': 'healthy',
            'service': 'Classroom Attendance Tracker',
            'version': '1.0.0'
        })

    return app

def register_blueprints(app: Flask) -> None:
    """Register all application blueprints."""
    from attendance_tracker.api.sessions import sessions_bp
    from attendance_tracker.api.subjects import subjects_bp
    from attendance_tracker.api.standby import standby_bp
    from attendance_tracker.api.detections import detections_bp
    from attendance_tracker.api.attendance import attendance_bp

    # Session tracking
    app.register_blueprint(sessions_bp, url_prefix='/api/sessions')

    # Operator actions
    app.register_blueprint(subjects_bp, url_prefix='/api/subjects')
    app.register_blueprint(standby_bp, url_prefix='/api/standby')
    app.register_blueprint(attendance_bp, url_prefix='/api/attendance')

    # External event source
    app.register_blueprint(detections_bp, url_prefix='/api/detections')

def register_error_handlers(app: Flask) -> None:
    """Register error handlers."""
    from attendance_tracker.exceptions import AttendanceError
    from attendance_tracker.utils.helpers import handle_error
    from attendance_tracker.utils.validators import ValidationError
    from werkzeug.exceptions import HTTPException

    @app.errorhandler(400)
    def bad_request(error):
        return handle_error(error, 400)

    @app.errorhandler(404)
    def not_found(error):
        return handle_error(error, 404)

    @app.errorhandler(429)
    def rate_limited(error):
        return handle_error(error, 429)

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        return handle_error(error, 500)

    @app.errorhandler(HTTPException)
    def handle_exception(e):
        return handle_error(e, e.code)

    @app.errorhandler(AttendanceError)
    def handle_attendance_error(e):
        db.session.rollback()
        return handle_error(e, e.status_code)

    @app.errorhandler(ValidationError)
    def handle_validation_error(e):
        return handle_error(e, 400)

def setup_logging(app: Flask) -> None:
    """Setup application logging."""
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    logging.getLogger('attendance_tracker').setLevel(level)

    # Reduce APScheduler logging - only show warnings and errors
    logging.getLogger('apscheduler').setLevel(logging.WARNING)

    if not app.debug and not app.testing:
        log_file = app.config.get('LOG_FILE', 'logs/app.log')
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)

        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(level)
        app.logger.addHandler(file_handler)
        logging.getLogger('attendance_tracker').addHandler(file_handler)

        app.logger.setLevel(level)
        app.logger.info('Classroom Attendance Tracker startup')

def setup_database(app: Flask) -> None:
    """Setup database connections."""
    with app.app_context():
        # Import all models
        from attendance_tracker.models import (
            Attendance, Subject, Student,
            AttendanceRecord, AttendanceStatus, StandbyStudent
        )

def setup_engine(app: Flask) -> None:
    """Attach the session engine and transition lock, then start background jobs."""
    from attendance_tracker.services.session_engine import SessionEngine
    from attendance_tracker.services.transition_lock import create_transition_lock

    app.extensions['session_engine'] = SessionEngine(app)
    app.extensions['transition_lock'] = create_transition_lock(app)

    if app.config.get('SCHEDULER_ENABLED'):
        from attendance_tracker.services.scheduler_service import start_scheduler
        start_scheduler(app)

def register_commands(app: Flask) -> None:
    """Register CLI commands."""
    import click

    @app.cli.command()
    @click.option('--drop', is_flag=True, help='Drop existing tables')
    def init_db(drop):
        """Initialize the database."""
        if drop:
            db.drop_all()
            click.echo('Dropped all tables.')

        db.create_all()
        click.echo('Created all tables.')

    @app.cli.command()
    def seed_db():
        """Seed database with demo students and subjects."""
        from attendance_tracker.services.seed_service import SeedService

        try:
            SeedService.seed_all()
            click.echo('Database seeded successfully!')
        except Exception as e:
            db.session.rollback()
            click.echo(f'Error seeding database: {str(e)}')

    @app.cli.command('activate-subject')
    @click.argument('subject_id', type=int)
    def activate_subject(subject_id):
        """Activate a subject and migrate every student's session."""
        from attendance_tracker.exceptions import AttendanceError
        from attendance_tracker.services.subject_transition import SubjectTransitionCoordinator

        try:
            result = SubjectTransitionCoordinator.activate(subject_id)
            click.echo(f"Subject {subject_id} is now active ({result.seeded} records seeded, "
                       f"{result.drained} standby entries drained).")
        except AttendanceError as e:
            click.echo(f'Error activating subject: {e}')

    @app.cli.command('deactivate-all')
    def deactivate_all():
        """Deactivate every subject."""
        from attendance_tracker.services.subject_transition import SubjectTransitionCoordinator

        SubjectTransitionCoordinator.deactivate_all()
        click.echo('All subjects deactivated.')

    @app.cli.command('auto-adjust')
    @click.argument('attendance_id', type=int)
    @click.argument('subject_id', type=int)
    @click.option('--min-percentage', type=float, default=None)
    def auto_adjust(attendance_id, subject_id, min_percentage):
        """Recompute statuses for one attendance day and subject."""
        from attendance_tracker.exceptions import AttendanceError
        from attendance_tracker.services.status_reconciler import StatusReconciler

        try:
            result = StatusReconciler.auto_adjust(
                attendance_id, subject_id, min_percentage=min_percentage
            )
            click.echo(f'Checked {result.checked} records, updated {len(result.updated)}.')
        except AttendanceError as e:
            click.echo(f'Error adjusting statuses: {e}')
