"""
Health check — open path, no auth, no dependencies touched.
"""
from flask import Blueprint, jsonify

bp = Blueprint('health', __name__)


@bp.route('/health')
def health():
    return jsonify({'status': 'ok'})
