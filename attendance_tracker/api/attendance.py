"""Attendance day API."""
from flask import Blueprint
from attendance_tracker.services.attendance_day_service import AttendanceDayService
from attendance_tracker.utils.helpers import exception_response, success_response

attendance_bp = Blueprint('attendance', __name__)

@attendance_bp.route('/today', methods=['POST'])
def ensure_today():
    """Get or create today's attendance day."""
    try:
        attendance = AttendanceDayService.ensure_today()
        return success_response(data=attendance.to_dict())
    except Exception as e:
        return exception_response(e, "creating attendance day")

@attendance_bp.route('/latest', methods=['GET'])
def get_latest():
    try:
        attendance = AttendanceDayService.latest_day()
        if not attendance:
            return success_response(data=None, message="No attendance days yet")
        return success_response(data=attendance.to_dict())
    except Exception as e:
        return exception_response(e, "fetching attendance day")

@attendance_bp.route('/<int:attendance_id>', methods=['GET'])
def get_day(attendance_id):
    try:
        attendance = AttendanceDayService.get_day(attendance_id)
        return success_response(data=attendance.to_dict())
    except Exception as e:
        return exception_response(e, "fetching attendance day")
