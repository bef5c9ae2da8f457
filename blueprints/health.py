"""
Health Check Blueprint

- ``/health``            liveness: the process answers
- ``/health/readiness``  readiness: the database answers a trivial query
"""

from datetime import datetime, timezone

import structlog
from flask import Blueprint, current_app, jsonify

from models import check_database_health

logger = structlog.get_logger(__name__)

health_bp = Blueprint('health', __name__, url_prefix='/health')


def _service_info():
    return {
        'service': current_app.config.get('APP_NAME', 'user-validation-service'),
        'version': current_app.config.get('APP_VERSION', '1.0.0'),
        'timestamp': datetime.now(timezone.utc).isoformat(),
    }


@health_bp.route('', methods=['GET'])
def liveness_probe():
    return jsonify({'status': 'healthy', **_service_info()}), 200


@health_bp.route('/readiness', methods=['GET'])
def readiness_probe():
    """
    Readiness probe.

    HTTP Status Codes:
        200: Database reachable
        503: Database check failed
    """
    database = check_database_health()
    is_ready = database['status'] == 'healthy'
    if not is_ready:
        logger.warning("readiness_probe_failed", database=database)
    return jsonify({
        'status': 'ready' if is_ready else 'unavailable',
        'database': database['status'],
        **_service_info(),
    }), 200 if is_ready else 503
