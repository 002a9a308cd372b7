"""Detection events from the face recognition service."""
from flask import Blueprint, current_app, request
from attendance_tracker import limiter
from attendance_tracker.services.detection_service import DetectionService
from attendance_tracker.utils.helpers import exception_response, success_response
from attendance_tracker.utils.validators import Validator

detections_bp = Blueprint('detections', __name__)

@detections_bp.route('/', methods=['POST'])
@limiter.limit(lambda: current_app.config.get('DETECTION_RATE_LIMIT', '120 per minute'))
def handle_detection():
    """A student was recognized in the classroom."""
    try:
        data = Validator.require_fields(request.get_json(silent=True), ['student_id'])
        result = DetectionService.handle_detection(
            Validator.parse_int(data['student_id'], 'student_id')
        )

        status_code = 201 if result['outcome'] in ('standby', 'started') else 200
        return success_response(data=result, message="Detection processed", status_code=status_code)
    except Exception as e:
        return exception_response(e, "processing detection")
