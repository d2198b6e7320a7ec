"""
ScoutScore diagnostic route — score one prospect synchronously.

With "debug": true the response carries each overlay's raw result and the
effective composition weights.
"""
from flask import Blueprint, jsonify, request

from scoutscan.errors import ValidationError
from scoutscan.scoring.engine import ALL_OVERLAYS, ScoutScoreEngine
from scoutscan.services.queue_handlers import optional_str, prospect_from_payload

bp = Blueprint('scoring', __name__)


@bp.route('/api/scoutscore', methods=['POST'])
def scoutscore():
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    overlays = data.get('overlays', list(ALL_OVERLAYS))
    if not isinstance(overlays, list) or any(not isinstance(o, str) or o not in ALL_OVERLAYS for o in overlays):
        raise ValidationError(f"overlays must be a subset of {list(ALL_OVERLAYS)}")

    prospect = prospect_from_payload(data)
    active_industry = optional_str(data, 'active_industry')
    score = ScoutScoreEngine(overlays=overlays).score(prospect, active_industry=active_industry)
    return jsonify({'success': True, 'score': score.to_dict(debug=bool(data.get('debug')))})
