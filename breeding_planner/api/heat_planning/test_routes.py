# breeding_planner/api/heat_planning/test_routes.py
"""
/api/heat-planning 블루프린트 테스트 (Flask test client)
"""

import pytest
from flask_jwt_extended import create_access_token

from breeding_planner import create_app

OWNER_ID = 'owner-1'


@pytest.fixture
def app(heat_planning_service):
    return create_app('testing', services={'heat_planning': heat_planning_service})


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers(app):
    with app.app_context():
        token = create_access_token(identity=OWNER_ID)
    return {'Authorization': f'Bearer {token}'}


def test_requires_token(client):
    response = client.get('/api/heat-planning/predictions')
    assert response.status_code == 401


def test_get_predictions(client, auth_headers):
    response = client.get('/api/heat-planning/predictions', headers=auth_headers)
    body = response.get_json()

    assert response.status_code == 200
    assert body['as_of'] == '2025-06-01'
    assert body['stale'] is False
    assert [d['name'] for d in body['fertile_dogs']] == ['Bella', 'Luna']

    bella = body['predictions']['bella']
    assert bella[0] == {
        'id': 'bella-1', 'animal_id': 'bella', 'animal_name': 'Bella', 'date': '2024-06-29', 'year': 2024,
        'status': 'overdue', 'confidence': 'low', 'interval': 180, 'projected_date': '2024-06-29',
        'age_at_heat': 3.3, 'has_planned_litter': False, 'planned_litter_id': None,
        'confirmed_cycle_id': None, 'notes': None,
    }
    assert body['years'] == [2025, 2026]
    assert [p['date'] for p in body['by_year']['2025']['bella']] == ['2025-06-24', '2025-12-21']
    assert body['issues'] == []


def test_search_and_selection_filters(client, auth_headers):
    body = client.get('/api/heat-planning/predictions?search=bell', headers=auth_headers).get_json()
    assert [d['name'] for d in body['fertile_dogs']] == ['Bella']
    assert list(body['predictions']) == ['bella']
    assert len(body['predictions']['bella']) == 6

    body = client.get('/api/heat-planning/predictions?animal_ids=luna', headers=auth_headers).get_json()
    assert list(body['predictions']) == ['luna']
    assert [d['id'] for d in body['fertile_dogs']] == ['luna']


def test_invalid_query_is_rejected(client, auth_headers):
    response = client.get('/api/heat-planning/predictions?years=abc', headers=auth_headers)
    assert response.status_code == 400
    assert response.get_json()['error_code'] == 'VALIDATION_ERROR'


def test_fetch_failure_without_snapshot(client, auth_headers, animal_repository):
    animal_repository.fail_reads = True
    response = client.get('/api/heat-planning/predictions', headers=auth_headers)
    assert response.status_code == 503
    assert response.get_json()['error_code'] == 'FETCH_FAILED'


def test_stale_snapshot_after_refresh_failure(client, auth_headers, animal_repository):
    client.post('/api/heat-planning/refresh', headers=auth_headers)
    animal_repository.fail_reads = True

    response = client.post('/api/heat-planning/refresh', headers=auth_headers)
    assert response.status_code == 200
    assert response.get_json()['stale'] is True


def test_fertile_dogs(client, auth_headers):
    body = client.get('/api/heat-planning/fertile-dogs?search=LU', headers=auth_headers).get_json()
    assert body['fertile_dogs'] == [
        {'id': 'luna', 'name': 'Luna', 'birthdate': '2022-05-10', 'age': 3.1, 'needs_warning': False},
    ]


def test_reminders(client, auth_headers, reminder_service):
    body = client.get('/api/heat-planning/reminders', headers=auth_headers).get_json()

    first = body['reminders'][0]
    assert first['id'] == 'heat-bella-2025-06-24'
    assert first['type'] == 'heat'
    assert first['priority'] == 'high'
    assert first['related_id'] == 'bella'
    assert reminder_service.sync_calls == 1


def test_confirm_heat(client, auth_headers):
    response = client.post('/api/heat-planning/bella/confirmations', headers=auth_headers,
                           json={'date': '2024-07-01', 'notes': 'observed'})
    body = response.get_json()

    assert response.status_code == 201
    assert body['cycle']['id'] == 'bella_20240701'
    assert body['prediction']['status'] == 'confirmed'

    again = client.post('/api/heat-planning/bella/confirmations', headers=auth_headers, json={'date': '2024-07-02'})
    assert again.status_code == 409
    assert again.get_json()['error_code'] == 'ALREADY_CONFIRMED'


@pytest.mark.parametrize("payload", [{}, {'date': 'yesterday'}, {'date': '2999-01-01'}])
def test_confirm_heat_validation(client, auth_headers, payload):
    response = client.post('/api/heat-planning/bella/confirmations', headers=auth_headers, json=payload)
    assert response.status_code == 400


def test_confirm_heat_persistence_failure(client, auth_headers, cycle_repository):
    cycle_repository.fail_writes = True
    response = client.post('/api/heat-planning/bella/confirmations', headers=auth_headers,
                           json={'date': '2024-07-01'})
    assert response.status_code == 502
    assert response.get_json()['error_code'] == 'PERSISTENCE_FAILED'


def test_confirm_heat_unknown_animal(client, auth_headers):
    response = client.post('/api/heat-planning/rex/confirmations', headers=auth_headers,
                           json={'date': '2024-07-01'})
    assert response.status_code == 404


def test_plan_litter(client, auth_headers):
    response = client.post('/api/heat-planning/bella/planned-litters', headers=auth_headers,
                           json={'expected_heat_date': '2025-12-20'})
    body = response.get_json()

    assert response.status_code == 201
    assert body['litter']['status'] == 'planned'
    assert body['prediction']['status'] == 'planned'
    assert body['prediction']['date'] == '2025-12-21'
