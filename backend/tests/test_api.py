import pytest

from conftest import TestConfig, claim_for
from platform_drop import create_app, db
from platform_drop.models import GameSession


def _start(client, **kwargs):
    res = client.post('/api/sessions', **kwargs)
    assert res.status_code == 201
    return res.get_json()


def test_index_and_health(client):
    assert client.get('/').status_code == 200
    assert client.get('/health').get_json() == {'status': 'ok'}


def test_create_session(client, clock):
    data = _start(client)
    assert set(data) == {'sessionId', 'token', 'issuedAt'}
    assert data['issuedAt'] == clock.now
    assert len(data['token']) == 64


def test_create_session_records_forwarded_ip(client):
    data = _start(client, headers={'X-Forwarded-For': '198.51.100.7, 10.0.0.1'})
    assert db.session.get(GameSession, data['sessionId']).client_ip == '198.51.100.7'


def test_submit_score_accepted(client, clock):
    issued = _start(client)
    clock.advance(2000)
    res = client.post('/api/scores', json=claim_for(issued, distance=40))
    assert res.status_code == 201
    body = res.get_json()
    assert body['success'] is True
    assert body['message'] == 'Score submitted successfully'
    assert body['entry']['distance'] == 40


@pytest.mark.parametrize('advance, overrides, status, code', [
    (2000, {'distance': 61}, 422, 'implausible'),
    (500, {'distance': 1}, 422, 'implausible'),
    (3 * 60 * 60 * 1000, {}, 410, 'expired'),
    (2000, {'token': 'a' * 64}, 403, 'forged-proof'),
    (2000, {'sessionId': 'missing'}, 404, 'not-found'),
    (2000, {'initials': 'abc'}, 400, 'invalid-input'),
])
def test_submit_score_rejections(client, clock, advance, overrides, status, code):
    issued = _start(client)
    clock.advance(advance)
    res = client.post('/api/scores', json=claim_for(issued, **overrides))
    assert res.status_code == status
    body = res.get_json()
    assert body['success'] is False
    assert body['code'] == code
    assert body['message']


def test_replay_rejected_with_conflict(client, clock):
    issued = _start(client)
    clock.advance(2000)
    assert client.post('/api/scores', json=claim_for(issued)).status_code == 201
    res = client.post('/api/scores', json=claim_for(issued))
    assert res.status_code == 409
    assert res.get_json()['code'] == 'already-consumed'


def test_non_json_body_is_invalid_input(client):
    res = client.post('/api/scores', data='not json', content_type='text/plain')
    assert res.status_code == 400
    assert res.get_json()['code'] == 'invalid-input'


def test_rejection_messages_do_not_reveal_bounds(client, clock):
    issued = _start(client)
    clock.advance(2000)
    body = client.post('/api/scores', json=claim_for(issued, distance=61)).get_json()
    assert '60' not in body['message']
    assert '2000' not in body['message']


def _play(client, clock, initials, distance, wait_ms=10_000):
    issued = _start(client)
    clock.advance(wait_ms)
    res = client.post('/api/scores', json=claim_for(issued, initials=initials, distance=distance))
    assert res.status_code == 201


def test_leaderboard_orders_by_distance(client, clock):
    _play(client, clock, 'AAA', 120)
    _play(client, clock, 'BBB', 250.7)
    _play(client, clock, 'CCC', 90)
    _play(client, clock, 'DDD', 250)

    res = client.get('/api/leaderboard')
    assert res.status_code == 200
    rows = res.get_json()
    assert [r['initials'] for r in rows] == ['BBB', 'DDD', 'AAA', 'CCC']
    assert rows[0]['distance'] == 250
    assert set(rows[0]) == {'avatarId', 'initials', 'distance', 'date', 'sessionId'}


def test_leaderboard_limit(client, clock):
    for i in range(5):
        _play(client, clock, 'ABC', 10 + i)
    rows = client.get('/api/leaderboard?limit=2').get_json()
    assert [r['distance'] for r in rows] == [14, 13]


@pytest.mark.parametrize('limit', ['0', '-3', 'ten'])
def test_leaderboard_bad_limit(client, limit):
    res = client.get(f'/api/leaderboard?limit={limit}')
    assert res.status_code == 400
    assert res.get_json()['code'] == 'invalid-input'


def test_unknown_route_is_json_404(client):
    res = client.get('/api/nope')
    assert res.status_code == 404
    assert res.get_json()['success'] is False


def test_missing_secret_refuses_to_start():
    class NoSecret(TestConfig):
        SCORE_TOKEN_SECRET = None

    with pytest.raises(RuntimeError):
        create_app(NoSecret)


def test_failed_broadcast_still_reports_accepted_score(client, clock, monkeypatch):
    from platform_drop import socketio

    def boom(*args, **kwargs):
        raise RuntimeError('message queue unavailable')

    monkeypatch.setattr(socketio, 'emit', boom)
    issued = _start(client)
    clock.advance(2000)
    res = client.post('/api/scores', json=claim_for(issued))
    assert res.status_code == 201
    assert res.get_json()['success'] is True
    assert client.post('/api/scores', json=claim_for(issued)).get_json()['code'] == 'already-consumed'


def test_huge_integer_distance_is_invalid_input(client, clock):
    issued = _start(client)
    clock.advance(2000)
    res = client.post('/api/scores', json=claim_for(issued, distance=10 ** 400))
    assert res.status_code == 400
    assert res.get_json()['code'] == 'invalid-input'
