"""Tests for the fleet-wide status recalculation."""

from datetime import timedelta

from sqlalchemy import update
from sqlalchemy.exc import OperationalError
from sqlalchemy.sql.dml import Update

from railqual import db
from railqual.models import Qualification
from railqual.services.recalculation import RecalculationService


def statuses():
    db.session.expire_all()
    return {q.car_id: q.status for q in Qualification.query.all()}


def test_refreshes_stale_statuses(make_qualification, now):
    make_qualification(car_id='CAR-1', next_due_date=now - timedelta(days=1), status='current')
    make_qualification(car_id='CAR-2', next_due_date=now + timedelta(days=25), status='due_soon')
    make_qualification(car_id='CAR-3', next_due_date=now + timedelta(days=45), status='current')
    make_qualification(car_id='CAR-4', next_due_date=now + timedelta(days=300), status='current')
    make_qualification(car_id='CAR-5', status='current')

    result = RecalculationService.recalculate_all_statuses(now)

    assert result == {'updated': 4}
    assert statuses() == {
        'CAR-1': 'overdue',
        'CAR-2': 'due',
        'CAR-3': 'due_soon',
        'CAR-4': 'current',
        'CAR-5': 'unknown',
    }


def test_second_pass_changes_nothing(make_qualification, now):
    make_qualification(car_id='CAR-1', next_due_date=now - timedelta(days=1), status='current')
    make_qualification(car_id='CAR-2', next_due_date=now + timedelta(days=25), status='current')

    RecalculationService.recalculate_all_statuses(now)
    before = statuses()

    assert RecalculationService.recalculate_all_statuses(now) == {'updated': 0}
    assert statuses() == before


def test_all_records_judged_against_same_day(make_qualification, now):
    for index in range(7):
        make_qualification(car_id=f'CAR-{index}', next_due_date=now + timedelta(days=index * 20), status='unknown')

    later = now + timedelta(days=40)
    result = RecalculationService.recalculate_all_statuses(later, chunk_size=2)

    assert result == {'updated': 7}
    assert statuses() == {
        'CAR-0': 'overdue',
        'CAR-1': 'overdue',
        'CAR-2': 'due',
        'CAR-3': 'due',
        'CAR-4': 'due_soon',
        'CAR-5': 'due_soon',
        'CAR-6': 'due_soon',
    }


def test_exempt_records_are_left_alone(make_qualification, now):
    make_qualification(
        car_id='CAR-1', next_due_date=now - timedelta(days=100), is_exempt=True, exempt_reason='Stored'
    )

    assert RecalculationService.recalculate_all_statuses(now) == {'updated': 0}
    assert statuses() == {'CAR-1': 'exempt'}


def test_empty_fleet(app, now):
    assert RecalculationService.recalculate_all_statuses(now) == {'updated': 0}


def patch_updates(monkeypatch, on_update):
    """Send every session UPDATE through on_update(run, session, count); run() performs the write."""
    session_class = type(db.session())
    original = session_class.execute
    calls = {'updates': 0}

    def execute(self, statement, *args, **kwargs):
        if isinstance(statement, Update):
            calls['updates'] += 1
            return on_update(lambda: original(self, statement, *args, **kwargs), self, calls['updates'])
        return original(self, statement, *args, **kwargs)

    monkeypatch.setattr(session_class, 'execute', execute)


def test_lock_conflict_skips_only_that_record(make_qualification, now, monkeypatch):
    for index in range(1, 4):
        make_qualification(car_id=f'CAR-{index}', next_due_date=now - timedelta(days=index), status='current')

    def on_update(run, session, count):
        if count == 2:
            raise OperationalError('UPDATE qualifications', {}, Exception('database is locked'))
        return run()

    patch_updates(monkeypatch, on_update)

    result = RecalculationService.recalculate_all_statuses(now)

    assert result == {'updated': 2}
    assert statuses() == {'CAR-1': 'overdue', 'CAR-2': 'current', 'CAR-3': 'overdue'}


def test_record_edited_mid_scan_is_left_as_written(make_qualification, now, monkeypatch):
    edited = make_qualification(car_id='CAR-1', next_due_date=now - timedelta(days=5), status='current')
    make_qualification(car_id='CAR-2', next_due_date=now - timedelta(days=5), status='current')
    new_due = now + timedelta(days=3650)

    def on_update(run, session, count):
        if count == 1:
            # A completion lands between the read and the guarded write
            session.connection().execute(
                update(Qualification.__table__).where(
                    Qualification.__table__.c.id == edited.id
                ).values(next_due_date=new_due)
            )
        return run()

    patch_updates(monkeypatch, on_update)

    result = RecalculationService.recalculate_all_statuses(now)

    assert result == {'updated': 1}
    db.session.expire_all()
    record = db.session.get(Qualification, edited.id)
    assert record.next_due_date == new_due
    assert record.status == 'current'
    assert statuses()['CAR-2'] == 'overdue'
