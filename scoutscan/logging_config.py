"""
Logging setup shared by the web app and the RQ worker.

LOG_LEVEL (default INFO) and LOG_FORMAT ("text" or "json") are read on every
call, so tests and the worker can reconfigure without re-importing config.
Pipeline and queue code pass scan_id / step / queue_item_id through `extra`;
the JSON formatter lifts them into top-level keys.
"""
import json
import logging
import sys
import os
from datetime import datetime, timezone

TEXT_FORMAT = '[%(asctime)s] %(levelname)s %(name)s — %(message)s'
TEXT_DATEFMT = '%Y-%m-%d %H:%M:%S'

# Chatty at INFO; only their warnings are interesting.
QUIET_LOGGERS = ('urllib3', 'openai', 'httpcore', 'httpx', 'rq.worker')


class JSONFormatter(logging.Formatter):
    """One JSON object per line, with scan / queue context when present."""

    CONTEXT_FIELDS = ('scan_id', 'queue_item_id', 'step')

    def format(self, record):
        payload = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        payload.update({
            name: getattr(record, name)
            for name in self.CONTEXT_FIELDS
            if getattr(record, name, None) is not None
        })
        if record.exc_info and record.exc_info[0] is not None:
            payload['exception'] = self.formatException(record.exc_info)
        return json.dumps(payload)


def _level_from_env() -> int:
    level = getattr(logging, os.getenv('LOG_LEVEL', 'INFO').upper(), None)
    return level if isinstance(level, int) else logging.INFO


def _formatter_from_env() -> logging.Formatter:
    if os.getenv('LOG_FORMAT', 'text').lower() == 'json':
        return JSONFormatter()
    return logging.Formatter(TEXT_FORMAT, datefmt=TEXT_DATEFMT)


def configure_logging(app=None):
    """Replace root handlers with a single stderr handler. Safe to call repeatedly."""
    level = _level_from_env()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(_formatter_from_env())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    if app is not None:
        app.logger.setLevel(level)
