"""Tests for scoutscan.logging_config — levels, formats, scan context fields."""
import json
import logging
import os
import sys
from unittest.mock import patch

import pytest
from flask import Flask

from scoutscan.logging_config import JSONFormatter, configure_logging


@pytest.fixture(autouse=True)
def _reset_root_logger():
    """Restore root logger state after each test."""
    root = logging.getLogger()
    original_level = root.level
    original_handlers = root.handlers[:]
    yield
    root.setLevel(original_level)
    root.handlers = original_handlers


def _configure(**env):
    with patch.dict(os.environ, env):
        for key in ('LOG_LEVEL', 'LOG_FORMAT'):
            if key not in env:
                os.environ.pop(key, None)
        configure_logging()


def _record(msg='Stage started', level=logging.INFO, **extra):
    record = logging.LogRecord(name='pipeline.manager', level=level, pathname='', lineno=0,
                               msg=msg, args=(), exc_info=None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestConfigureLogging:

    @pytest.mark.parametrize('env_level,expected', [
        (None, logging.INFO),
        ('DEBUG', logging.DEBUG),
        ('warning', logging.WARNING),
        ('NONSENSE', logging.INFO),
        ('basic_format', logging.INFO),
    ])
    def test_level_from_env(self, env_level, expected):
        _configure(**({'LOG_LEVEL': env_level} if env_level else {}))
        assert logging.getLogger().level == expected

    def test_single_handler_after_repeated_calls(self):
        _configure()
        _configure()
        assert len(logging.getLogger().handlers) == 1

    def test_text_output(self, capsys):
        _configure(LOG_FORMAT='text')
        logging.getLogger('pipeline.detection').info("3 candidate names detected")
        err = capsys.readouterr().err
        assert 'INFO pipeline.detection' in err
        assert '3 candidate names detected' in err

    def test_json_output_with_scan_context(self, capsys):
        _configure(LOG_FORMAT='json')
        logging.getLogger('services.scan_store').info(
            "Scan moved on", extra={'scan_id': 'scan-1', 'step': 'SCORING_PROSPECTS'})
        parsed = json.loads(capsys.readouterr().err.strip())
        assert parsed['logger'] == 'services.scan_store'
        assert parsed['scan_id'] == 'scan-1'
        assert parsed['step'] == 'SCORING_PROSPECTS'
        assert 'timestamp' in parsed

    def test_noisy_loggers_quietened(self):
        _configure(LOG_LEVEL='DEBUG')
        for name in ('urllib3', 'openai', 'httpcore', 'httpx', 'rq.worker'):
            assert logging.getLogger(name).level == logging.WARNING

    def test_flask_logger_follows_level(self):
        app = Flask('logging-test')
        with patch.dict(os.environ, {'LOG_LEVEL': 'WARNING'}):
            configure_logging(app)
        assert app.logger.level == logging.WARNING


class TestJSONFormatter:

    def test_context_fields_only_when_present(self):
        parsed = json.loads(JSONFormatter().format(_record(queue_item_id=7)))
        assert parsed['queue_item_id'] == 7
        assert 'scan_id' not in parsed
        assert parsed['message'] == 'Stage started'
        assert parsed['level'] == 'INFO'

    def test_exception_included(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = _record('failed', level=logging.ERROR)
            record.exc_info = sys.exc_info()
        parsed = json.loads(JSONFormatter().format(record))
        assert 'ValueError: boom' in parsed['exception']
