"""
Retry queue routes — enqueue work items and trigger batch processing.

POST /api/queue/process is meant to be hit by a scheduler (cron, Railway job).
"""
import logging

from flask import Blueprint, jsonify, request

from scoutscan import get_session_factory
from scoutscan.config import QUEUE_BATCH_LIMIT, QUEUE_DEFAULT_MAX_ATTEMPTS, require_config
from scoutscan.errors import ValidationError
from scoutscan.services.queue_handlers import make_handlers
from scoutscan.services.retry_queue import QueueProcessor, RetryQueue

logger = logging.getLogger(__name__)

bp = Blueprint('queue', __name__, url_prefix='/api/queue')


def _json_body():
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def _int_field(data, key, default):
    value = data.get(key, default)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{key} must be an integer")
    return value


@bp.route('/process', methods=['POST'])
def process_queue():
    """Process one batch of pending items."""
    require_config()
    data = _json_body()
    limit = _int_field(data, 'limit', QUEUE_BATCH_LIMIT)
    threshold = _int_field(data, 'priority_threshold', 0)
    if limit < 1:
        raise ValidationError("limit must be positive")

    session_factory = get_session_factory()
    processor = QueueProcessor(RetryQueue(session_factory), make_handlers(session_factory))
    outcome = processor.process_batch(limit=limit, priority_threshold=threshold)
    return jsonify({'success': True, **outcome})


@bp.route('/items', methods=['POST'])
def enqueue_item():
    """Add a work item to the queue."""
    require_config()
    data = _json_body()
    job_type = data.get('job_type')
    if job_type is not None and not isinstance(job_type, str):
        raise ValidationError("job_type must be a string")
    job_type = (job_type or '').strip()
    if not job_type:
        raise ValidationError("job_type is required")
    payload = data.get('payload') or {}
    if not isinstance(payload, dict):
        raise ValidationError("payload must be an object")

    item = RetryQueue(get_session_factory()).enqueue(
        job_type,
        payload,
        priority=_int_field(data, 'priority', 0),
        max_attempts=_int_field(data, 'max_attempts', QUEUE_DEFAULT_MAX_ATTEMPTS),
    )
    return jsonify({'success': True, 'item': item.to_dict()}), 201
