"""HTTP interface tests."""
import json
import pytest
from attendance_tracker.models import AttendanceRecord

@pytest.fixture
def subject(make_subject):
    """Duration-only subject, so its sessions start at the wall clock."""
    return make_subject('Chemistry', start=None, minutes=45)

def body(response):
    return json.loads(response.data)

def test_health_check(client):
    response = client.get('/health')
    assert response.status_code == 200
    assert body(response)['status'] == 'healthy'

def test_unknown_route_uses_error_envelope(client):
    response = client.get('/api/nothing-here')
    assert response.status_code == 404
    assert body(response)['error'] is True

def test_attendance_day_endpoints(client):
    assert body(client.get('/api/attendance/latest')).get('data') is None

    created = body(client.post('/api/attendance/today'))['data']
    again = body(client.post('/api/attendance/today'))['data']
    assert created['id'] == again['id']

    assert body(client.get(f"/api/attendance/{created['id']}"))['data']['date'] == created['date']
    assert client.get('/api/attendance/999').status_code == 404

def test_start_without_active_subject(client, students):
    response = client.post('/api/sessions/start', json={'student_id': students[0].id})
    assert response.status_code == 409
    assert body(response)['error'] is True

def test_start_requires_student_or_record(client):
    response = client.post('/api/sessions/start', json={})
    assert response.status_code == 400

def test_detection_flow(client, students, subject):
    student_id = students[0].id

    response = client.post('/api/detections/', json={'student_id': student_id})
    assert response.status_code == 201
    assert body(response)['data']['outcome'] == 'standby'

    listed = body(client.get('/api/standby/'))['data']
    assert [entry['student_id'] for entry in listed] == [student_id]

    response = client.post(f'/api/subjects/{subject.id}/activate')
    assert response.status_code == 200
    assert body(response)['data']['drained'] == 1
    assert body(response)['data']['seeded'] == 5

    active = body(client.get('/api/subjects/active'))['data']['subject']
    assert active['id'] == subject.id

    # The drained student is already being tracked
    response = client.post('/api/detections/', json={'student_id': student_id})
    assert response.status_code == 200
    assert body(response)['data']['outcome'] == 'already_started'

    response = client.post('/api/detections/', json={'student_id': students[1].id})
    assert response.status_code == 201
    assert body(response)['data']['outcome'] == 'started'

def test_break_endpoints(client, students, subject):
    client.post(f'/api/subjects/{subject.id}/activate')
    started = body(client.post('/api/sessions/start', json={'student_id': students[0].id}))
    record_id = started['data']['id']

    assert client.post(f'/api/sessions/{record_id}/pause').status_code == 200
    assert client.post(f'/api/sessions/{record_id}/pause').status_code == 409

    live = body(client.get(f'/api/sessions/{record_id}'))['data']['live']
    assert live['state'] == 'on_break'

    assert client.post(f'/api/sessions/{record_id}/resume').status_code == 200
    assert client.post(f'/api/sessions/{record_id}/resume').status_code == 409

    stopped = client.post(f'/api/sessions/{record_id}/stop')
    assert stopped.status_code == 200
    assert body(stopped)['data']['time_end'] is not None
    assert client.post(f'/api/sessions/{record_id}/stop').status_code == 409

def test_session_actions_on_unknown_record(client):
    assert client.post('/api/sessions/999/stop').status_code == 404
    assert client.get('/api/sessions/999').status_code == 404

def test_set_status(client, students, subject):
    client.post(f'/api/subjects/{subject.id}/activate')

    response = client.post('/api/sessions/status',
                           json={'student_id': students[2].id, 'status': 'excused'})
    assert response.status_code == 200
    assert body(response)['data']['status'] == 'EXCUSED'

    response = client.post('/api/sessions/status',
                           json={'student_id': students[2].id, 'status': 'asleep'})
    assert response.status_code == 400

def test_roster_and_report(client, students, subject):
    client.post(f'/api/subjects/{subject.id}/activate')
    client.post('/api/sessions/start', json={'student_id': students[0].id})

    roster = body(client.get('/api/sessions/roster'))['data']
    assert roster['subject_id'] == subject.id
    assert len(roster['students']) == 5
    tracked = [row for row in roster['students'] if row['id'] == students[0].id][0]
    assert tracked['record']['state'] == 'active'
    assert tracked['record']['break_time_display'] == '10:00'

    report = body(client.get('/api/sessions/report'))['data']['records']
    assert len(report) == 5
    assert all('duration' in row for row in report)

def test_auto_adjust_endpoint(client, students, subject):
    activated = body(client.post(f'/api/subjects/{subject.id}/activate'))['data']

    response = client.post(f'/api/subjects/{subject.id}/auto-adjust', json={})
    assert response.status_code == 400

    response = client.post(f'/api/subjects/{subject.id}/auto-adjust',
                           json={'attendance_id': activated['attendance_id'], 'min_percentage': 150})
    assert response.status_code == 400

    response = client.post(f'/api/subjects/{subject.id}/auto-adjust',
                           json={'attendance_id': activated['attendance_id']})
    assert response.status_code == 200
    assert body(response)['data']['checked'] == 0

def test_deactivate_all_endpoint(client, students, subject):
    client.post(f'/api/subjects/{subject.id}/activate')

    response = client.post('/api/subjects/deactivate-all')
    assert response.status_code == 200
    assert body(client.get('/api/subjects/active'))['data']['subject'] is None

def test_standby_crud(client, students):
    created = client.post('/api/standby/', json={'student_id': students[0].id})
    assert created.status_code == 201
    entry_id = body(created)['data']['id']

    patched = client.patch(f'/api/standby/{entry_id}', json={'status': 'late'})
    assert body(patched)['data']['status'] == 'LATE'

    assert client.delete(f'/api/standby/{entry_id}').status_code == 200
    assert client.get(f'/api/standby/{entry_id}').status_code == 404

def test_resync_endpoint(client, students, subject):
    client.post(f'/api/subjects/{subject.id}/activate')
    response = client.post('/api/sessions/resync')
    assert response.status_code == 200
    assert body(response)['data']['tracked'] == AttendanceRecord.query.count()
