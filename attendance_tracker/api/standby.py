"""Standby queue API."""
from flask import Blueprint, request
from attendance_tracker.services.standby_service import StandbyService
from attendance_tracker.utils.helpers import exception_response, success_response
from attendance_tracker.utils.validators import Validator

standby_bp = Blueprint('standby', __name__)

@standby_bp.route('/', methods=['GET'])
def get_entries():
    """Get all standby entries, oldest detection first."""
    try:
        entries = StandbyService.list_entries()
        return success_response(data=[entry.to_dict() for entry in entries])
    except Exception as e:
        return exception_response(e, "fetching standby entries")

@standby_bp.route('/', methods=['POST'])
def admit_student():
    """Queue a student until the next subject activation."""
    try:
        data = Validator.require_fields(request.get_json(silent=True), ['student_id'])

        entry = StandbyService.admit(
            Validator.parse_int(data['student_id'], 'student_id'),
            detected_at=Validator.parse_datetime(data.get('detected_at'), 'detected_at'),
            status=data.get('status') or 'PRESENT'
        )
        return success_response(data=entry.to_dict(), message="Student on standby", status_code=201)
    except Exception as e:
        return exception_response(e, "admitting student")

@standby_bp.route('/<int:entry_id>', methods=['GET'])
def get_entry(entry_id):
    try:
        entry = StandbyService.get_entry(entry_id)
        return success_response(data=entry.to_dict())
    except Exception as e:
        return exception_response(e, "fetching standby entry")

@standby_bp.route('/<int:entry_id>', methods=['PATCH'])
def update_entry(entry_id):
    """Change the provisional status of an entry."""
    try:
        data = Validator.require_fields(request.get_json(silent=True), ['status'])
        entry = StandbyService.update_status(entry_id, data['status'])
        return success_response(data=entry.to_dict(), message="Standby entry updated")
    except Exception as e:
        return exception_response(e, "updating standby entry")

@standby_bp.route('/<int:entry_id>', methods=['DELETE'])
def remove_entry(entry_id):
    try:
        StandbyService.remove(entry_id)
        return success_response(message="Standby entry removed")
    except Exception as e:
        return exception_response(e, "removing standby entry")
