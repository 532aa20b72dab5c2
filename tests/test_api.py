"""HTTP tests for the qualification, alert and car endpoints."""

from datetime import date, timedelta

from sqlalchemy.exc import SQLAlchemyError

from railqual.models import Qualification, QualificationHistory
from railqual.services.audit import AuditService

ACTOR = {'X-Actor-Id': 'user-42'}


class TestQualificationEndpoints:

    def test_list_types(self, client, tank_type, valve_type, retired_type):
        response = client.get('/api/qualifications/types')

        assert response.status_code == 200
        body = response.get_json()
        assert body['success'] is True
        assert [t['code'] for t in body['data']] == ['VALVE_INSPECTION', 'TANK_REQUALIFICATION']

    def test_create_returns_201(self, client, tank_type):
        response = client.post('/api/qualifications', json={
            'car_id': 'GATX200002',
            'qualification_type_id': tank_type.id,
            'last_completed_date': '2019-05-01',
        }, headers=ACTOR)

        assert response.status_code == 201
        data = response.get_json()['data']
        assert data['next_due_date'] == '2029-05-01'
        assert data['expiry_date'] == '2029-12-31'
        assert data['type_code'] == 'TANK_REQUALIFICATION'

        event = QualificationHistory.query.filter_by(entity_id=data['id']).one()
        assert event.actor_id == 'user-42'

    def test_create_duplicate_returns_409(self, client, tank_type):
        payload = {'car_id': 'GATX200002', 'qualification_type_id': tank_type.id}
        client.post('/api/qualifications', json=payload)

        response = client.post('/api/qualifications', json=payload)

        assert response.status_code == 409
        assert response.get_json()['success'] is False

    def test_create_invalid_date_returns_400(self, client, tank_type):
        response = client.post('/api/qualifications', json={
            'car_id': 'GATX200002',
            'qualification_type_id': tank_type.id,
            'next_due_date': '31/31/2031',
        })

        assert response.status_code == 400
        assert response.get_json()['error'] == 'Invalid next_due_date: must be a valid date string'

    def test_store_failure_returns_500(self, client, tank_type, monkeypatch):
        def fail(*args, **kwargs):
            raise SQLAlchemyError('connection reset')

        monkeypatch.setattr(AuditService, 'record_event', fail)

        response = client.post('/api/qualifications', json={
            'car_id': 'GATX200002',
            'qualification_type_id': tank_type.id,
        })

        assert response.status_code == 500
        assert response.get_json() == {'success': False, 'error': 'An unexpected error occurred'}
        assert Qualification.query.count() == 0

    def test_non_object_body_returns_400(self, client, tank_type):
        response = client.post('/api/qualifications', json=['not', 'an', 'object'])

        assert response.status_code == 400

    def test_list_with_filters(self, client, make_qualification, now):
        make_qualification(car_id='CAR-1', next_due_date=date(2020, 1, 1))
        make_qualification(car_id='CAR-2')

        response = client.get('/api/qualifications?status=overdue&limit=10')

        body = response.get_json()
        assert body['total'] == 1
        assert body['data'][0]['car_id'] == 'CAR-1'

    def test_get_and_missing(self, client, make_qualification):
        qualification = make_qualification()

        assert client.get(f'/api/qualifications/{qualification.id}').status_code == 200
        response = client.get('/api/qualifications/9999')
        assert response.status_code == 404
        assert response.get_json() == {'success': False, 'error': 'Qualification not found'}

    def test_complete(self, client, make_qualification):
        qualification = make_qualification(next_due_date=date(2020, 1, 1))

        response = client.post(
            f'/api/qualifications/{qualification.id}/complete',
            json={'completed_date': '2026-02-01', 'certificate_number': 'CERT-9'},
            headers=ACTOR
        )

        assert response.status_code == 200
        data = response.get_json()['data']
        assert data['next_due_date'] == '2036-02-01'
        assert data['certificate_number'] == 'CERT-9'

        history = client.get(f'/api/qualifications/{qualification.id}/history').get_json()['data']
        assert history[0]['action'] == 'completed'
        assert history[0]['actor_id'] == 'user-42'

    def test_complete_requires_date(self, client, make_qualification):
        qualification = make_qualification()

        response = client.post(f'/api/qualifications/{qualification.id}/complete', json={})

        assert response.status_code == 400

    def test_complete_invalid_date(self, client, make_qualification):
        qualification = make_qualification()

        response = client.post(
            f'/api/qualifications/{qualification.id}/complete', json={'completed_date': 'soonish'}
        )

        assert response.status_code == 400
        assert 'completed_date' in response.get_json()['error']

    def test_complete_missing_record(self, client, app):
        response = client.post('/api/qualifications/9999/complete', json={'completed_date': '2026-02-01'})

        assert response.status_code == 404

    def test_update(self, client, make_qualification):
        qualification = make_qualification()

        response = client.put(f'/api/qualifications/{qualification.id}', json={'notes': 'Lining recoated'})

        assert response.status_code == 200
        assert response.get_json()['data']['notes'] == 'Lining recoated'
        assert client.put('/api/qualifications/9999', json={'notes': 'x'}).status_code == 404

    def test_bulk_update(self, client, make_qualification):
        first = make_qualification(car_id='CAR-1')
        second = make_qualification(car_id='CAR-2')

        response = client.post('/api/qualifications/bulk-update', json={
            'ids': [first.id, second.id],
            'status': 'exempt',
            'exempt_reason': 'Stored',
        })

        assert response.status_code == 200
        assert response.get_json()['data'] == {'updated': 2}

    def test_bulk_update_requires_ids(self, client, app):
        response = client.post('/api/qualifications/bulk-update', json={'ids': [], 'notes': 'x'})

        assert response.status_code == 400

    def test_bulk_update_over_limit(self, client, app):
        response = client.post('/api/qualifications/bulk-update', json={
            'ids': list(range(1, 502)),
            'notes': 'x',
        })

        assert response.status_code == 400
        assert 'Received 501' in response.get_json()['error']

    def test_stats_and_recalculate(self, client, make_qualification, now):
        make_qualification(next_due_date=now - timedelta(days=1), status='current')

        response = client.post('/api/qualifications/recalculate', json={'now': now.isoformat()})
        assert response.get_json()['data'] == {'updated': 1}

        stats = client.get('/api/qualifications/stats').get_json()['data']
        assert stats['overdue_count'] == 1
        assert stats['total_cars'] == 1

    def test_due_by_month(self, client, make_qualification, now):
        make_qualification(next_due_date=date(2026, 12, 5))

        response = client.get(f'/api/qualifications/due-by-month?now={now.isoformat()}')

        assert response.get_json()['data'][0]['month'] == '2026-12'


class TestAlertEndpoints:

    def test_list_and_acknowledge(self, client, make_qualification, make_alert, now):
        alert = make_alert(make_qualification(next_due_date=now + timedelta(days=20)))

        body = client.get('/api/qualifications/alerts?is_acknowledged=false').get_json()
        assert body['total'] == 1
        assert body['data'][0]['type_code'] == 'TANK_REQUALIFICATION'

        response = client.post(f'/api/qualifications/alerts/{alert.id}/acknowledge', headers=ACTOR)
        assert response.status_code == 200

        repeat = client.post(f'/api/qualifications/alerts/{alert.id}/acknowledge', headers=ACTOR)
        assert repeat.status_code == 404

        body = client.get('/api/qualifications/alerts?is_acknowledged=true').get_json()
        assert body['data'][0]['acknowledged_by'] == 'user-42'


class TestCarEndpoints:

    def test_car_qualifications(self, client, make_qualification, valve_type):
        make_qualification(car_id='TILX300003')
        make_qualification(car_id='TILX300003', qualification_type=valve_type)

        data = client.get('/api/cars/TILX300003/qualifications').get_json()['data']

        assert [q['type_code'] for q in data] == ['VALVE_INSPECTION', 'TANK_REQUALIFICATION']

    def test_qualification_priority(self, client, make_qualification, now):
        make_qualification(car_id='TILX300003', next_due_date=now + timedelta(days=45))

        response = client.get(f'/api/cars/TILX300003/qualification-priority?now={now.isoformat()}')

        data = response.get_json()['data']
        assert data['recommended_priority'] == 3
        assert data['priority_label'] == 'Medium'
