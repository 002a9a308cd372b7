"""Subject activation API - operator actions."""
from flask import Blueprint, request
from attendance_tracker.models import Subject
from attendance_tracker.services.status_reconciler import StatusReconciler
from attendance_tracker.services.subject_transition import SubjectTransitionCoordinator
from attendance_tracker.utils.helpers import exception_response, success_response
from attendance_tracker.utils.validators import Validator

subjects_bp = Blueprint('subjects', __name__)

@subjects_bp.route('/', methods=['GET'])
def get_subjects():
    """Get all subjects in timetable order."""
    try:
        subjects = Subject.query.order_by(Subject.order.asc(), Subject.id.asc()).all()
        return success_response(data=[subject.to_dict() for subject in subjects])
    except Exception as e:
        return exception_response(e, "fetching subjects")

@subjects_bp.route('/active', methods=['GET'])
def get_active_subject():
    """Get the active subject, if any."""
    try:
        subject = SubjectTransitionCoordinator.active_subject()
        return success_response(
            data={'subject': subject.to_dict() if subject else None},
            message="Active subject" if subject else "No active subject"
        )
    except Exception as e:
        return exception_response(e, "fetching active subject")

@subjects_bp.route('/<int:subject_id>/activate', methods=['POST'])
def activate_subject(subject_id):
    """Activate a subject and migrate every student's session."""
    try:
        result = SubjectTransitionCoordinator.activate(subject_id)
        return success_response(data=result.to_dict(), message="Subject activated")
    except Exception as e:
        return exception_response(e, "activating subject")

@subjects_bp.route('/deactivate-all', methods=['POST'])
def deactivate_all_subjects():
    try:
        result = SubjectTransitionCoordinator.deactivate_all()
        return success_response(data=result.to_dict(), message="All subjects deactivated")
    except Exception as e:
        return exception_response(e, "deactivating subjects")

@subjects_bp.route('/<int:subject_id>/auto-adjust', methods=['POST'])
def auto_adjust(subject_id):
    """Recompute statuses for one attendance day of this subject."""
    try:
        data = Validator.require_fields(request.get_json(silent=True), ['attendance_id'])

        result = StatusReconciler.auto_adjust(
            Validator.parse_int(data['attendance_id'], 'attendance_id'),
            subject_id,
            subject_start_time=Validator.parse_datetime(data.get('subject_start_time'),
                                                        'subject_start_time'),
            min_percentage=Validator.parse_percentage(data.get('min_percentage'))
        )
        return success_response(data=result.to_dict(), message="Statuses adjusted")
    except Exception as e:
        return exception_response(e, "adjusting statuses")
