"""Session tracking API."""
from flask import Blueprint, request
from attendance_tracker.services.roster_service import RosterService, live_values
from attendance_tracker.services.session_engine import get_engine
from attendance_tracker.services.session_service import SessionService
from attendance_tracker.utils.helpers import exception_response, success_response, utcnow
from attendance_tracker.utils.validators import Validator

sessions_bp = Blueprint('sessions', __name__)

@sessions_bp.route('/start', methods=['POST'])
def start_session():
    """Start time tracking for a record, or for a student in the current context."""
    try:
        data = request.get_json(silent=True) or {}

        record_id = Validator.parse_int(data.get('record_id'), 'record_id')
        if record_id is not None:
            record = SessionService.start(record_id)
        else:
            Validator.require_fields(data, ['student_id'])
            record = SessionService.start_for_student(
                Validator.parse_int(data['student_id'], 'student_id'),
                attendance_id=Validator.parse_int(data.get('attendance_id'), 'attendance_id'),
                subject_id=Validator.parse_int(data.get('subject_id'), 'subject_id')
            )

        return success_response(data=record.to_dict(), message="Session started", status_code=201)

    except Exception as e:
        return exception_response(e, "starting session")

@sessions_bp.route('/<int:record_id>/stop', methods=['POST'])
def stop_session(record_id):
    """End time tracking."""
    try:
        record = SessionService.stop(record_id)
        return success_response(data=record.to_dict(), message="Session ended")
    except Exception as e:
        return exception_response(e, "stopping session")

@sessions_bp.route('/<int:record_id>/pause', methods=['POST'])
def pause_session(record_id):
    try:
        record = SessionService.pause_break(record_id)
        return success_response(data=record.to_dict(), message="Break started")
    except Exception as e:
        return exception_response(e, "starting break")

@sessions_bp.route('/<int:record_id>/resume', methods=['POST'])
def resume_session(record_id):
    try:
        record = SessionService.resume_break(record_id)
        return success_response(data=record.to_dict(), message="Break ended")
    except Exception as e:
        return exception_response(e, "ending break")

@sessions_bp.route('/status', methods=['POST'])
def set_status():
    """Manually set a student's status."""
    try:
        data = Validator.require_fields(request.get_json(silent=True), ['student_id', 'status'])

        record = SessionService.set_status(
            Validator.parse_int(data['student_id'], 'student_id'),
            data['status'],
            attendance_id=Validator.parse_int(data.get('attendance_id'), 'attendance_id'),
            subject_id=Validator.parse_int(data.get('subject_id'), 'subject_id')
        )
        return success_response(data=record.to_dict(), message="Status updated")

    except Exception as e:
        return exception_response(e, "updating status")

@sessions_bp.route('/<int:record_id>', methods=['GET'])
def get_session(record_id):
    """Stored record plus its live projection."""
    try:
        now = utcnow()
        record = SessionService.get_record(record_id)
        data = record.to_dict()
        data['live'] = live_values(record, record.subject, now)
        return success_response(data=data)
    except Exception as e:
        return exception_response(e, "fetching session")

@sessions_bp.route('/roster', methods=['GET'])
def get_roster():
    """Every student with their record for a day and subject."""
    try:
        attendance, subject = SessionService.resolve_context(
            request.args.get('attendance_id', type=int),
            request.args.get('subject_id', type=int)
        )
        rows = RosterService.roster(attendance.id, subject.id)
        return success_response(data={
            'attendance_id': attendance.id,
            'subject_id': subject.id,
            'students': rows
        })
    except Exception as e:
        return exception_response(e, "fetching roster")

@sessions_bp.route('/report', methods=['GET'])
def get_report():
    """Tracked time per student for a day and subject."""
    try:
        attendance, subject = SessionService.resolve_context(
            request.args.get('attendance_id', type=int),
            request.args.get('subject_id', type=int)
        )
        report = RosterService.attendance_time(attendance.id, subject.id)
        return success_response(data={
            'attendance_id': attendance.id,
            'subject_id': subject.id,
            'records': report
        })
    except Exception as e:
        return exception_response(e, "building report")

@sessions_bp.route('/resync', methods=['POST'])
def resync_sessions():
    """Discard live state and reload it from the database."""
    try:
        engine = get_engine()
        tracked = engine.resync() if engine is not None else 0
        return success_response(data={'tracked': tracked}, message="Sessions resynced")
    except Exception as e:
        return exception_response(e, "resyncing sessions")
