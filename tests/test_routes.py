import pytest
from datetime import date, datetime, timedelta
from unittest.mock import Mock
from courtside.main import create_app
from courtside.utils.security import generate_token

# Routes check against the wall clock, so book well ahead of today
MATCH_DAY = (date.today() + timedelta(days=30)).isoformat()


@pytest.fixture
def client_setup(players, repository):
    app = create_app(repository=repository, notification_service=Mock(), start_scheduler=False)
    app.config['TESTING'] = True

    def headers(name):
        token = generate_token({'user_id': players[name].id})
        return {'Authorization': f'Bearer {token}'}

    yield {'client': app.test_client(), 'headers': headers, **players}


def post_slot(setup, user='owner', start='18:00', end='19:00', **extra):
    body = {'date': MATCH_DAY, 'start_time': start, 'end_time': end}
    body.update(extra)
    return setup['client'].post('/api/availability', json=body, headers=setup['headers'](user))


class TestAuth:

    def test_health_is_public(self, client_setup):
        response = client_setup['client'].get('/api/health')
        assert response.status_code == 200
        assert response.get_json() == {'status': 'ok'}

    def test_missing_token(self, client_setup):
        response = client_setup['client'].get('/api/availability')
        assert response.status_code == 401
        assert response.get_json()['code'] == 'unauthenticated'

    def test_bad_token(self, client_setup):
        response = client_setup['client'].get(
            '/api/availability', headers={'Authorization': 'Bearer not-a-token'}
        )
        assert response.status_code == 401


class TestAvailabilityRoutes:
    """Availability endpoints"""

    def test_create_and_list(self, client_setup):
        response = post_slot(client_setup, notes='Court 3')
        assert response.status_code == 201
        body = response.get_json()
        assert body['created_count'] == 1
        assert body['created'][0]['start_time'] == '18:00:00'

        listing = client_setup['client'].get('/api/availability', headers=client_setup['headers']('owner'))
        slots = listing.get_json()['availability']
        assert len(slots) == 1
        assert slots[0]['notes'] == 'Court 3'
        assert slots[0]['recurrence_description'] is None

    def test_missing_fields(self, client_setup):
        response = client_setup['client'].post(
            '/api/availability', json={'date': MATCH_DAY}, headers=client_setup['headers']('owner')
        )
        assert response.status_code == 400
        assert response.get_json()['code'] == 'invalid_request'

    def test_inverted_interval(self, client_setup):
        response = post_slot(client_setup, start='19:00', end='18:00')
        assert response.status_code == 400
        assert response.get_json()['code'] == 'invalid_interval'

    def test_mixed_weekday_types_are_400(self, client_setup):
        response = post_slot(client_setup, recurrence={'pattern': 'weekly', 'daysOfWeek': [1, '3']})
        assert response.status_code == 400
        assert response.get_json()['code'] == 'invalid_interval'

    def test_overlap_is_409(self, client_setup):
        post_slot(client_setup)
        response = post_slot(client_setup, start='18:30', end='19:30')
        assert response.status_code == 409
        assert response.get_json()['code'] == 'conflict'

    def test_recurring_series_described_in_listing(self, client_setup):
        response = post_slot(client_setup, recurrence={'pattern': 'daily', 'interval': 1, 'endDate': MATCH_DAY})
        assert response.status_code == 201
        assert response.get_json()['recurrence_rule']

        listing = client_setup['client'].get('/api/availability', headers=client_setup['headers']('owner'))
        assert listing.get_json()['availability'][0]['recurrence_description']

    def test_update_and_delete(self, client_setup):
        slot_id = post_slot(client_setup).get_json()['created'][0]['id']
        headers = client_setup['headers']('owner')

        response = client_setup['client'].put(
            f'/api/availability/{slot_id}', json={'end_time': '20:00'}, headers=headers
        )
        assert response.status_code == 200
        assert response.get_json()['availability'][0]['end_time'] == '20:00:00'

        response = client_setup['client'].delete(f'/api/availability/{slot_id}', headers=headers)
        assert response.status_code == 200
        assert response.get_json()['succeeded'] == [slot_id]

    def test_other_player_cannot_delete(self, client_setup):
        slot_id = post_slot(client_setup).get_json()['created'][0]['id']
        response = client_setup['client'].delete(
            f'/api/availability/{slot_id}', headers=client_setup['headers']('rival')
        )
        assert response.status_code == 403

    def test_invalid_scope(self, client_setup):
        slot_id = post_slot(client_setup).get_json()['created'][0]['id']
        response = client_setup['client'].delete(
            f'/api/availability/{slot_id}?scope=some', headers=client_setup['headers']('owner')
        )
        assert response.status_code == 400

    def test_grid(self, client_setup):
        post_slot(client_setup, start='09:00', end='10:00')
        response = client_setup['client'].get(
            f'/api/availability/grid?start={MATCH_DAY}&days=1', headers=client_setup['headers']('owner')
        )
        assert response.status_code == 200
        grid = response.get_json()['grid']
        assert grid[MATCH_DAY]['9'] == [{'type': 'available'}] * 4

    def test_grid_days_out_of_range(self, client_setup):
        response = client_setup['client'].get(
            '/api/availability/grid?days=40', headers=client_setup['headers']('owner')
        )
        assert response.status_code == 400

    def test_check_conflict(self, client_setup):
        post_slot(client_setup)
        response = client_setup['client'].post(
            '/api/availability/check-conflict',
            json={'date': MATCH_DAY, 'start_time': '18:45', 'end_time': '19:15'},
            headers=client_setup['headers']('owner')
        )
        assert response.get_json() == {'conflict': True}


class TestInviteRoutes:
    """Invite endpoints"""

    def _send(self, setup, start='18:00', end='19:00', **extra):
        body = {
            'receiver_id': setup['owner'].id,
            'date': MATCH_DAY,
            'start_time': start,
            'end_time': end,
        }
        body.update(extra)
        return setup['client'].post('/api/invites', json=body, headers=setup['headers']('rival'))

    def test_send_and_accept(self, client_setup):
        response = self._send(client_setup)
        assert response.status_code == 201
        invite_id = response.get_json()['id']

        response = client_setup['client'].post(
            f'/api/invites/{invite_id}/respond', json={'decision': 'accept'},
            headers=client_setup['headers']('owner')
        )
        assert response.status_code == 200
        assert response.get_json()['status'] == 'accepted'

        booked = client_setup['client'].get(
            f'/api/invites/booked?date={MATCH_DAY}&start_time=18:30&end_time=19:30',
            headers=client_setup['headers']('owner')
        )
        assert booked.get_json() == {'booked': True}

    def test_wrong_user_cannot_respond(self, client_setup):
        invite_id = self._send(client_setup).get_json()['id']
        response = client_setup['client'].post(
            f'/api/invites/{invite_id}/respond', json={'decision': 'accept'},
            headers=client_setup['headers']('third')
        )
        assert response.status_code == 403
        assert response.get_json()['code'] == 'unauthorized'

    def test_respond_twice_is_409(self, client_setup):
        invite_id = self._send(client_setup).get_json()['id']
        headers = client_setup['headers']('owner')
        client_setup['client'].post(f'/api/invites/{invite_id}/respond', json={'decision': 'decline'}, headers=headers)

        response = client_setup['client'].post(
            f'/api/invites/{invite_id}/respond', json={'decision': 'accept'}, headers=headers
        )
        assert response.status_code == 409
        assert response.get_json()['code'] == 'invalid_transition'

    def test_send_with_client_expiry(self, client_setup):
        expires_at = (datetime.now() + timedelta(days=2)).replace(microsecond=0)
        response = self._send(client_setup, expires_at=expires_at.isoformat())
        assert response.status_code == 201
        assert response.get_json()['expires_at'] == expires_at.isoformat()

    @pytest.mark.parametrize('expires_at', ['soon', '2000-01-01T00:00:00'])
    def test_send_with_bad_expiry_is_400(self, client_setup, expires_at):
        response = self._send(client_setup, expires_at=expires_at)
        assert response.status_code == 400
        assert response.get_json()['code'] == 'scheduling_error'

    def test_booked_is_limited_to_caller(self, client_setup):
        invite_id = self._send(client_setup).get_json()['id']
        client_setup['client'].post(
            f'/api/invites/{invite_id}/respond', json={'decision': 'accept'},
            headers=client_setup['headers']('owner')
        )

        response = client_setup['client'].get(
            f"/api/invites/booked?date={MATCH_DAY}&start_time=18:00&end_time=19:00"
            f"&user_id={client_setup['owner'].id}",
            headers=client_setup['headers']('third')
        )
        assert response.status_code == 403
        assert response.get_json()['code'] == 'unauthorized'

        own = client_setup['client'].get(
            f"/api/invites/booked?date={MATCH_DAY}&start_time=18:00&end_time=19:00"
            f"&user_id={client_setup['owner'].id}",
            headers=client_setup['headers']('owner')
        )
        assert own.get_json() == {'booked': True}

    def test_receiver_double_booking_is_409(self, client_setup):
        self._send(client_setup)
        response = self._send(client_setup, start='18:30', end='19:30')
        assert response.status_code == 409

    def test_proposal_round_trip(self, client_setup):
        invite_id = self._send(client_setup).get_json()['id']
        client = client_setup['client']

        response = client.post(f'/api/invites/{invite_id}/propose', json={
            'date': MATCH_DAY, 'start_time': '20:00', 'end_time': '21:00'
        }, headers=client_setup['headers']('owner'))
        assert response.status_code == 200
        assert response.get_json()['proposed_by_user_id'] == client_setup['owner'].id

        response = client.post(f'/api/invites/{invite_id}/accept-proposal', headers=client_setup['headers']('rival'))
        assert response.status_code == 200
        assert response.get_json()['start_time'] == '20:00:00'

    def test_list_with_status_filter(self, client_setup):
        self._send(client_setup)
        headers = client_setup['headers']('owner')

        pending = client_setup['client'].get('/api/invites?status=pending', headers=headers).get_json()
        assert len(pending['invites']) == 1
        accepted = client_setup['client'].get('/api/invites?status=accepted', headers=headers).get_json()
        assert accepted['invites'] == []

    def test_cancel_and_fetch(self, client_setup):
        invite_id = self._send(client_setup).get_json()['id']
        client = client_setup['client']

        response = client.post(f'/api/invites/{invite_id}/cancel', json={'reason': 'Rain'},
                               headers=client_setup['headers']('rival'))
        assert response.get_json()['status'] == 'cancelled'

        assert client.get(f'/api/invites/{invite_id}', headers=client_setup['headers']('owner')).status_code == 200
        assert client.get(f'/api/invites/{invite_id}', headers=client_setup['headers']('third')).status_code == 403
