"""
Scan routes — start a scan, poll its status, fetch its results.
"""
import logging

from flask import Blueprint, g, jsonify, request

from scoutscan import get_app_scan_queue, get_session_factory
from scoutscan.config import require_config
from scoutscan.errors import ValidationError
from scoutscan.pipeline.manager import launch_scan
from scoutscan.services.scan_store import ScanStore

logger = logging.getLogger(__name__)

bp = Blueprint('scans', __name__, url_prefix='/api/scans')


def _scan_id_arg():
    scan_id = (request.args.get('scanId') or '').strip()
    if not scan_id:
        raise ValidationError("scanId is required")
    return scan_id


@bp.route('/start', methods=['POST'])
def start_scan():
    """Create a scan and queue it. Returns as soon as the job is queued."""
    require_config()

    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    raw_text = data.get('rawText')
    if not isinstance(raw_text, str) or not raw_text.strip():
        raise ValidationError("rawText is required")
    for key in ('scanId', 'sourceType', 'sourceRef', 'industry'):
        if data.get(key) is not None and not isinstance(data[key], str):
            raise ValidationError(f"{key} must be a string")

    scan = launch_scan(
        ScanStore(get_session_factory()),
        get_app_scan_queue(),
        raw_text=raw_text,
        user_id=g.user_id,
        scan_id=(data.get('scanId') or '').strip() or None,
        source_type=data.get('sourceType') or 'paste',
        source_ref=data.get('sourceRef'),
        industry=data.get('industry'),
    )
    return jsonify({'success': True, 'scanId': scan.id, 'status': 'queued'})


@bp.route('/status')
def scan_status():
    """Latest status event + aggregate counts."""
    status = ScanStore(get_session_factory()).status(_scan_id_arg())
    return jsonify({'success': True, **status})


@bp.route('/results')
def scan_results():
    """Summary counts + prospects ordered by score desc."""
    results = ScanStore(get_session_factory()).results(_scan_id_arg())
    return jsonify({'success': True, **results})
