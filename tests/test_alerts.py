"""Tests for alert listing and acknowledgment."""

from datetime import timedelta

from railqual import db
from railqual.models import QualificationAlert
from railqual.services.alerts import AlertService


def test_list_orders_by_days_until_due(make_qualification, make_alert, valve_type, now):
    first = make_qualification(car_id='CAR-1', next_due_date=now + timedelta(days=20))
    second = make_qualification(car_id='CAR-2', next_due_date=now - timedelta(days=3))
    third = make_qualification(car_id='CAR-3', qualification_type=valve_type)

    make_alert(first, 'warning_30', days_until_due=20)
    make_alert(second, 'overdue', days_until_due=-3)
    make_alert(third, 'expired', days_until_due=None)

    result = AlertService.get_alerts()

    assert result['total'] == 3
    assert [a.days_until_due for a in result['alerts']] == [-3, 20, None]


def test_filters(make_qualification, make_alert, now):
    first = make_qualification(car_id='CAR-1', next_due_date=now + timedelta(days=20))
    second = make_qualification(car_id='CAR-2', next_due_date=now + timedelta(days=80))

    make_alert(first, 'warning_30', days_until_due=20)
    make_alert(second, 'warning_90', days_until_due=80, is_acknowledged=True)

    pending = AlertService.get_alerts({'is_acknowledged': False})
    assert [a.car_id for a in pending['alerts']] == ['CAR-1']

    by_type = AlertService.get_alerts({'alert_type': 'warning_90'})
    assert by_type['total'] == 1
    assert by_type['alerts'][0].car_id == 'CAR-2'

    by_car = AlertService.get_alerts({'car_id': 'CAR-1'})
    assert by_car['total'] == 1


def test_total_ignores_page_size(make_qualification, make_alert, now):
    qualification = make_qualification(next_due_date=now + timedelta(days=20))
    for days in range(5):
        make_alert(qualification, days_until_due=days)

    result = AlertService.get_alerts(limit=2, offset=1)

    assert result['total'] == 5
    assert [a.days_until_due for a in result['alerts']] == [1, 2]


def test_acknowledge_pending_alert(make_qualification, make_alert, now):
    alert = make_alert(make_qualification(next_due_date=now + timedelta(days=20)))

    assert AlertService.acknowledge_alert(alert.id, actor_id='user-5') is True

    db.session.expire_all()
    record = db.session.get(QualificationAlert, alert.id)
    assert record.is_acknowledged is True
    assert record.acknowledged_by == 'user-5'
    assert record.acknowledged_at is not None


def test_acknowledge_is_not_repeatable(make_qualification, make_alert, now):
    alert = make_alert(make_qualification(next_due_date=now + timedelta(days=20)))

    assert AlertService.acknowledge_alert(alert.id, actor_id='user-5') is True
    assert AlertService.acknowledge_alert(alert.id, actor_id='user-6') is False

    db.session.expire_all()
    assert db.session.get(QualificationAlert, alert.id).acknowledged_by == 'user-5'


def test_acknowledge_unknown_alert(app):
    assert AlertService.acknowledge_alert(31337) is False
