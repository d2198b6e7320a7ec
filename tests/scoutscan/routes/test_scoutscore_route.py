"""Tests for /health and /api/scoutscore."""
import pytest


class TestHealth:

    def test_open_without_token(self, client):
        resp = client.get('/health')
        assert resp.status_code == 200
        assert resp.get_json() == {'status': 'ok'}

    def test_unknown_route_uses_envelope(self, client, auth_headers):
        resp = client.get('/api/nope', headers=auth_headers)
        assert resp.status_code == 404
        assert resp.get_json()['success'] is False


class TestScoutScoreRoute:

    def test_scores_prospect(self, client, auth_headers):
        resp = client.post('/api/scoutscore', headers=auth_headers, json={
            'name': 'Ana Cruz',
            'snippet': 'Scam ba to? Legit ba?',
            'industry': 'mlm',
            'active_industry': 'mlm',
        })
        assert resp.status_code == 200
        score = resp.get_json()['score']
        assert score['emotional_state'] == 'skeptical'
        assert score['tone_adjustment'] == 'more_reassuring'
        assert score['industry'] == 'mlm'
        assert 0 <= score['final_score'] <= 100
        assert {'score', 'rating', 'breakdown'} <= set(score)
        assert 'debug' not in score

    def test_debug_with_overlay_subset(self, client, auth_headers):
        resp = client.post('/api/scoutscore', headers=auth_headers, json={
            'name': 'Ana Cruz', 'snippet': 'hello', 'overlays': ['emotion'], 'debug': True,
        })
        debug = resp.get_json()['score']['debug']
        assert debug['weights'] == {'base': 0.8, 'emotion': 0.2}
        assert list(debug['overlays']) == ['emotion']

    def test_no_overlays_equals_base(self, client, auth_headers):
        score = client.post('/api/scoutscore', headers=auth_headers, json={
            'name': 'Ana Cruz', 'snippet': 'interested sa business', 'overlays': [],
        }).get_json()['score']
        assert score['final_score'] == score['base_score']

    def test_industry_mismatch_is_generic(self, client, auth_headers):
        score = client.post('/api/scoutscore', headers=auth_headers, json={
            'name': 'Ana Cruz', 'snippet': 'Gusto ko ng extra income', 'industry': 'insurance',
            'active_industry': 'mlm',
        }).get_json()['score']
        assert score['industry'] is None
        assert score['persona'] == 'generic'

    def test_unknown_overlay_is_400(self, client, auth_headers):
        resp = client.post('/api/scoutscore', headers=auth_headers,
                           json={'name': 'Ana Cruz', 'overlays': ['astrology']})
        assert resp.status_code == 400

    def test_name_required(self, client, auth_headers):
        resp = client.post('/api/scoutscore', headers=auth_headers, json={'snippet': 'hello'})
        assert resp.status_code == 400
        assert resp.get_json()['error'] == 'name is required'

    def test_mixed_timestamps(self, client, auth_headers):
        resp = client.post('/api/scoutscore', headers=auth_headers, json={
            'name': 'Maria Santos',
            'events': [
                {'kind': 'reply', 'timestamp': '2026-10-01T10:00:00Z', 'text': 'magkano po?'},
                {'kind': 'reply', 'timestamp': '2026-10-02T10:00:00', 'text': 'interested po'},
            ],
        })
        assert resp.status_code == 200

    @pytest.mark.parametrize('body', [
        {'name': 'Maria Santos', 'events': ['yesterday']},
        {'name': 'Maria Santos', 'events': 'yesterday'},
        {'name': 42},
        {'name': 'Maria Santos', 'active_industry': ['mlm']},
        {'name': 'Maria Santos', 'overlays': [['emotion']]},
        ['Maria Santos'],
    ])
    def test_malformed_body_is_400(self, client, auth_headers, body):
        resp = client.post('/api/scoutscore', headers=auth_headers, json=body)
        assert resp.status_code == 400
        assert resp.get_json()['success'] is False
