"""Tests for /api/scans — start, status, results, auth and error envelope."""
import os
from unittest.mock import patch

import pytest

from scoutscan.errors import ScanNotFoundError
from scoutscan.pipeline.manager import run_scan


class TestAuth:

    def test_missing_token_is_401(self, client):
        resp = client.post('/api/scans/start', json={'rawText': 'Juan Dela Cruz'})
        assert resp.status_code == 401
        assert resp.get_json() == {'success': False, 'error': 'Missing bearer token'}

    def test_wrong_token_is_403(self, client):
        resp = client.post('/api/scans/start', json={'rawText': 'Juan Dela Cruz'},
                           headers={'Authorization': 'Bearer nope'})
        assert resp.status_code == 403
        assert resp.get_json()['success'] is False

    def test_empty_bearer_is_401(self, client):
        resp = client.get('/api/scans/status?scanId=x', headers={'Authorization': 'Bearer '})
        assert resp.status_code == 401


class TestStartScan:

    def test_queues_scan(self, client, auth_headers, fake_queue, scan_store):
        resp = client.post('/api/scans/start', headers=auth_headers, json={
            'rawText': 'Juan Dela Cruz messaged about pricing.',
            'scanId': 'scan-route-1',
            'industry': 'mlm',
        })
        assert resp.status_code == 200
        assert resp.get_json() == {'success': True, 'scanId': 'scan-route-1', 'status': 'queued'}

        fake_queue.enqueue.assert_called_once()
        assert fake_queue.enqueue.call_args.args == (run_scan, 'scan-route-1')
        scan = scan_store.get_scan('scan-route-1')
        assert scan.user_id == 'user-1'
        assert scan.industry == 'mlm'

    def test_anonymous_user_when_header_missing(self, client, scan_store):
        resp = client.post('/api/scans/start', headers={'Authorization': 'Bearer test-token'},
                           json={'rawText': 'Juan Dela Cruz', 'scanId': 'scan-route-2'})
        assert resp.status_code == 200
        assert scan_store.get_scan('scan-route-2').user_id == 'anonymous'

    def test_generates_scan_id(self, client, auth_headers):
        resp = client.post('/api/scans/start', headers=auth_headers, json={'rawText': 'Juan Dela Cruz'})
        assert len(resp.get_json()['scanId']) == 36

    def test_empty_raw_text_is_400(self, client, auth_headers, fake_queue):
        for body in ({}, {'rawText': ''}, {'rawText': '   '}, {'rawText': 42}):
            resp = client.post('/api/scans/start', headers=auth_headers, json=body)
            assert resp.status_code == 400
            assert resp.get_json() == {'success': False, 'error': 'rawText is required'}
        fake_queue.enqueue.assert_not_called()

    @pytest.mark.parametrize('body', [
        {'rawText': 'Juan Dela Cruz', 'scanId': 123},
        {'rawText': 'Juan Dela Cruz', 'sourceType': ['paste']},
        {'rawText': 'Juan Dela Cruz', 'industry': {'name': 'mlm'}},
        ['Juan Dela Cruz'],
    ])
    def test_wrongly_typed_fields_are_400(self, client, auth_headers, fake_queue, body):
        resp = client.post('/api/scans/start', headers=auth_headers, json=body)
        assert resp.status_code == 400
        assert resp.get_json()['success'] is False
        fake_queue.enqueue.assert_not_called()

    def test_unknown_source_type_is_400(self, client, auth_headers):
        resp = client.post('/api/scans/start', headers=auth_headers,
                           json={'rawText': 'Juan Dela Cruz', 'sourceType': 'fax'})
        assert resp.status_code == 400

    def test_duplicate_scan_id_is_400(self, client, auth_headers, make_scan):
        make_scan(scan_id='scan-taken')
        resp = client.post('/api/scans/start', headers=auth_headers,
                           json={'rawText': 'Juan Dela Cruz', 'scanId': 'scan-taken'})
        assert resp.status_code == 400

    def test_missing_config_is_500_and_writes_nothing(self, client, auth_headers, fake_queue, scan_store):
        with patch.dict(os.environ, {'REDIS_URL': ''}):
            resp = client.post('/api/scans/start', headers=auth_headers,
                               json={'rawText': 'Juan Dela Cruz', 'scanId': 'scan-no-config'})
        assert resp.status_code == 500
        assert 'REDIS_URL' in resp.get_json()['error']
        fake_queue.enqueue.assert_not_called()
        with pytest.raises(ScanNotFoundError):
            scan_store.get_scan('scan-no-config')

    def test_enqueue_failure_is_500(self, client, auth_headers, fake_queue, scan_store):
        fake_queue.enqueue.side_effect = ConnectionError('redis down')
        resp = client.post('/api/scans/start', headers=auth_headers,
                           json={'rawText': 'Juan Dela Cruz', 'scanId': 'scan-redis-down'})
        assert resp.status_code == 500
        assert resp.get_json() == {'success': False, 'error': 'Internal server error'}
        assert scan_store.get_scan('scan-redis-down').status == 'failed'


class TestScanStatus:

    def test_requires_scan_id(self, client, auth_headers):
        resp = client.get('/api/scans/status', headers=auth_headers)
        assert resp.status_code == 400
        assert resp.get_json()['error'] == 'scanId is required'

    def test_unknown_scan_is_404(self, client, auth_headers):
        resp = client.get('/api/scans/status?scanId=nope', headers=auth_headers)
        assert resp.status_code == 404
        assert resp.get_json()['success'] is False

    def test_queued_scan(self, client, auth_headers, make_scan):
        scan = make_scan()
        data = client.get(f'/api/scans/status?scanId={scan.id}', headers=auth_headers).get_json()
        assert data['success'] is True
        assert data['status'] == 'queued'
        assert data['step'] == 'QUEUED'
        assert data['percent'] == 0
        assert data['totalProspects'] == 0


class TestScanResults:

    def test_requires_scan_id(self, client, auth_headers):
        assert client.get('/api/scans/results', headers=auth_headers).status_code == 400

    def test_prospects_ordered_by_score(self, client, auth_headers, make_scan, scan_store):
        scan = make_scan()
        scan_store.add_items(scan.id, [
            {'name': 'Ana Cruz', 'score': 35.0, 'metadata': {'bucket': 'cold'}},
            {'name': 'Ben Lim', 'score': 74.0, 'metadata': {'bucket': 'hot'}},
        ])
        scan_store.complete_scan(scan.id, {'hot': 1, 'cold': 1, 'total': 2})

        data = client.get(f'/api/scans/results?scanId={scan.id}', headers=auth_headers).get_json()
        assert data['status'] == 'completed'
        assert data['summary'] == {'hot': 1, 'warm': 0, 'cold': 1, 'total': 2}
        assert [p['full_name'] for p in data['prospects']] == ['Ben Lim', 'Ana Cruz']
