"""
Pytest fixtures for RailQual tests.

Provides:
- Flask app and test client fixtures on in-memory SQLite
- Seeded qualification types
- Factories for qualification records and alerts
"""

import os
import tempfile
from datetime import date

import pytest

# Keep test logs out of the working tree
os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "railqual-test-logs"))

from railqual import create_app, db  # noqa: E402
from railqual.models import Qualification, QualificationAlert, QualificationType  # noqa: E402
from railqual.utils.calculations import derive_status  # noqa: E402

NOW = date(2026, 10, 18)


# ============================================================================
# Flask App Fixtures
# ============================================================================

@pytest.fixture
def app():
    """Create Flask application for testing."""
    app = create_app('testing')

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture
def now():
    return NOW


# ============================================================================
# Reference Data
# ============================================================================

@pytest.fixture
def tank_type(app):
    qualification_type = QualificationType(
        code='TANK_REQUALIFICATION',
        name='Tank Requalification',
        regulatory_body='DOT',
        default_interval_months=120
    )
    db.session.add(qualification_type)
    db.session.commit()
    return qualification_type


@pytest.fixture
def valve_type(app):
    qualification_type = QualificationType(
        code='VALVE_INSPECTION',
        name='Safety Relief Valve Inspection',
        regulatory_body='AAR',
        default_interval_months=60
    )
    db.session.add(qualification_type)
    db.session.commit()
    return qualification_type


@pytest.fixture
def retired_type(app):
    qualification_type = QualificationType(
        code='LEGACY_STENCIL',
        name='Legacy Stencil Check',
        regulatory_body='AAR',
        default_interval_months=24,
        is_active=False
    )
    db.session.add(qualification_type)
    db.session.commit()
    return qualification_type


# ============================================================================
# Factories
# ============================================================================

@pytest.fixture
def make_qualification(app, tank_type):
    """Insert a qualification directly, with its status derived against NOW."""

    def _make(car_id='UTLX100001', qualification_type=None, next_due_date=None, status=None, **fields):
        qualification = Qualification(
            car_id=car_id,
            qualification_type_id=(qualification_type or tank_type).id,
            next_due_date=next_due_date,
            **fields
        )
        qualification.status = status or derive_status(qualification, NOW)
        db.session.add(qualification)
        db.session.commit()
        return qualification

    return _make


@pytest.fixture
def make_alert(app):

    def _make(qualification, alert_type='warning_30', days_until_due=20, is_acknowledged=False):
        alert = QualificationAlert(
            qualification_id=qualification.id,
            car_id=qualification.car_id,
            qualification_type_id=qualification.qualification_type_id,
            alert_type=alert_type,
            alert_date=NOW,
            due_date=qualification.next_due_date or NOW,
            days_until_due=days_until_due,
            is_acknowledged=is_acknowledged
        )
        db.session.add(alert)
        db.session.commit()
        return alert

    return _make
