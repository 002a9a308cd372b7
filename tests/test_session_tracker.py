"""Tests for the elapsed-time and break-budget rules."""
from datetime import datetime, timedelta
from attendance_tracker.services.session_tracker import (
    LiveSession, SessionState, advance, consume_break, derive_state,
    elapsed_percentage, projected_render, render_seconds
)

START = datetime(2026, 3, 2, 9, 0)
HOUR = 3600

def live(**overrides):
    values = dict(
        record_id=1, attendance_id=1, subject_id=1, student_id=1,
        time_start=START, time_end=None, paused=False, break_time=600,
        total_time_render=0, duration_seconds=HOUR
    )
    values.update(overrides)
    session = LiveSession(**values)
    session.mark_persisted()
    return session

def test_derive_state():
    assert derive_state(None, None, False, 600) == SessionState.NOT_STARTED
    assert derive_state(START, None, False, 600) == SessionState.ACTIVE
    assert derive_state(START, None, True, 600) == SessionState.ON_BREAK
    assert derive_state(START, None, True, 0) == SessionState.BREAK_EXHAUSTED
    assert derive_state(START, START, False, 600) == SessionState.ENDED

def test_render_is_capped_at_duration():
    assert render_seconds(START, START + timedelta(minutes=30), HOUR) == 1800
    assert render_seconds(START, START + timedelta(hours=3), HOUR) == HOUR
    assert render_seconds(None, START, HOUR) == 0

def test_percentage_uses_whole_minutes():
    # 44m59s is still 44 minutes
    now = START + timedelta(minutes=44, seconds=59)
    assert elapsed_percentage(START, None, now, 60) == 44 / 60 * 100
    assert elapsed_percentage(START, None, START + timedelta(minutes=45), 60) == 75.0

def test_percentage_capped_and_zero_without_duration():
    assert elapsed_percentage(START, None, START + timedelta(hours=2), 60) == 100.0
    assert elapsed_percentage(START, None, START + timedelta(minutes=10), None) == 0.0
    assert elapsed_percentage(None, None, START, 60) == 0.0

def test_consume_break_floors_at_zero():
    anchor = START + timedelta(minutes=10)
    assert consume_break(600, anchor, anchor + timedelta(seconds=90)) == 510
    assert consume_break(600, anchor, anchor + timedelta(minutes=20)) == 0
    assert consume_break(600, None, anchor) == 600

def test_advance_drains_break_and_keeps_rendering():
    session = live(paused=True, total_time_render=600)
    now = START + timedelta(minutes=10, seconds=1)

    state = advance(session, now)

    assert state == SessionState.ON_BREAK
    assert session.break_time == 599
    assert session.total_time_render == 601
    assert session.dirty

def test_render_freezes_once_break_is_exhausted():
    session = live(paused=True, break_time=1, total_time_render=1200)

    assert advance(session, START + timedelta(minutes=20)) == SessionState.BREAK_EXHAUSTED
    frozen = session.total_time_render

    for seconds in range(1, 120):
        advance(session, START + timedelta(minutes=20, seconds=seconds))

    assert session.break_time == 0
    assert session.total_time_render == frozen

def test_advance_ignores_sessions_not_running():
    ended = live(time_end=START + timedelta(minutes=5), total_time_render=300)
    advance(ended, START + timedelta(minutes=30))
    assert ended.total_time_render == 300

    pending = live(time_start=None)
    assert advance(pending, START) == SessionState.NOT_STARTED
    assert pending.total_time_render == 0

def test_projected_render_stops_at_exhaustion_point():
    # Paused at 09:10 with the full budget: render stops counting at 09:20
    anchor = START + timedelta(minutes=10)
    render = projected_render(START, None, True, 600, 600, anchor,
                              START + timedelta(minutes=40), HOUR)
    assert render == 1200

def test_projected_render_for_ended_record_keeps_stored_total():
    end = START + timedelta(minutes=30)
    assert projected_render(START, end, False, 600, 1500, None, end, HOUR) == 1500
    assert projected_render(START, end, False, 600, 0, None, end, HOUR) == 1800
