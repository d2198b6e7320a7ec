"""Tests for scoutscan.services.notifications — Slack webhook posts."""
import pytest
import requests
from types import SimpleNamespace
from unittest.mock import patch, MagicMock

from scoutscan.services import notifications

WEBHOOK = 'https://hooks.slack.test/T000/B000'


def _scan(**overrides):
    fields = dict(id='scan-abcdef123', total_items=3, hot_leads=1, warm_leads=1, cold_leads=1,
                  error_message=None)
    fields.update(overrides)
    return SimpleNamespace(**fields)


@pytest.fixture
def webhook():
    with patch.object(notifications, 'SLACK_WEBHOOK_URL', WEBHOOK):
        yield


class TestScanNotifications:

    def test_noop_without_webhook(self):
        with patch.object(notifications, 'SLACK_WEBHOOK_URL', None), \
                patch('scoutscan.services.notifications.requests.post') as post:
            notifications.notify_scan_complete(_scan())
            notifications.notify_scan_failed(_scan())
        post.assert_not_called()

    def test_complete_lists_hot_leads(self, webhook):
        top = [{'full_name': 'Ben Lim', 'scout_score': 82.4, 'bucket': 'hot'},
               {'full_name': 'Ana Cruz', 'scout_score': 41.0, 'bucket': 'cold'}]
        with patch('scoutscan.services.notifications.requests.post') as post:
            notifications.notify_scan_complete(_scan(), top_prospects=top)

        url = post.call_args.args[0]
        blocks = post.call_args.kwargs['json']['blocks']
        assert url == WEBHOOK
        assert 'Ben Lim' in blocks[-1]['text']['text']
        assert 'Ana Cruz' not in blocks[-1]['text']['text']

    def test_failed_includes_error(self, webhook):
        with patch('scoutscan.services.notifications.requests.post') as post:
            notifications.notify_scan_failed(_scan(error_message='detector crashed'), step='DETECTING_NAMES')
        blocks = post.call_args.kwargs['json']['blocks']
        assert 'DETECTING_NAMES' in blocks[1]['fields'][1]['text']
        assert 'detector crashed' in blocks[-1]['text']['text']

    def test_post_errors_are_swallowed(self, webhook):
        with patch('scoutscan.services.notifications.requests.post',
                   side_effect=requests.ConnectionError('slack down')):
            notifications.notify_scan_complete(_scan())
            notifications.notify_scan_failed(_scan())


class TestHotLeadDigest:

    def test_skipped_without_webhook(self):
        with patch.object(notifications, 'SLACK_WEBHOOK_URL', None):
            assert notifications.notify_hot_lead_digest([], 0) is False

    def test_sends_digest(self, webhook):
        response = MagicMock()
        with patch('scoutscan.services.notifications.requests.post', return_value=response) as post:
            sent = notifications.notify_hot_lead_digest(
                [{'full_name': 'Ben Lim', 'scout_score': 88.0, 'bucket': 'hot'}], 2)
        assert sent is True
        response.raise_for_status.assert_called_once()
        assert 'from 2 scans' in post.call_args.kwargs['json']['blocks'][0]['text']['text']

    def test_http_errors_propagate(self, webhook):
        response = MagicMock()
        response.raise_for_status.side_effect = requests.HTTPError('500')
        with patch('scoutscan.services.notifications.requests.post', return_value=response):
            with pytest.raises(requests.HTTPError):
                notifications.notify_hot_lead_digest([], 0)
