"""
Health check endpoints for application monitoring.

``/health`` answers as long as the process serves requests and is meant for
load balancer probes. ``/health/readiness`` additionally checks the database
and the cache, returning 503 while the database is unreachable.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, Tuple

from flask import Blueprint, Flask, Response, current_app, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from extensions import cache, db

logger = logging.getLogger(__name__)


def check_database_health() -> Dict[str, Any]:
    """
    Check database connection health.

    Returns:
        Dict[str, Any]: Database health information
    """
    result = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }

    try:
        start_time = time.time()
        db.session.execute(text("SELECT 1")).fetchall()
        query_time = time.time() - start_time

        result.update({
            "latency_ms": round(query_time * 1000, 2),
            "message": "Database is accessible"
        })
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error("Database health check failed: %s", str(e))
        result.update({
            "status": "critical",
            "message": "Database connection error"
        })

    return result


def check_cache_health() -> Dict[str, Any]:
    """Round-trip a value through the cache."""
    test_key = f"health_check_{time.time()}"
    test_value = datetime.now(timezone.utc).isoformat()

    cache.set(test_key, test_value, timeout=10)
    retrieved = cache.get(test_key)
    cache.delete(test_key)

    if current_app.config.get('CACHE_TYPE') == 'NullCache':
        return {"status": "disabled"}
    if retrieved != test_value:
        return {"status": "degraded", "message": "Cache retrieval mismatch"}
    return {"status": "healthy"}


def register_health_endpoints(app: Flask) -> None:
    """Register health check endpoints with the Flask application."""
    health_bp = Blueprint('health', __name__, url_prefix='/health')

    @health_bp.route('', methods=['GET'])
    def basic_health_check() -> Tuple[Response, int]:
        """Liveness probe: 200 while the application serves requests."""
        return jsonify({
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": current_app.config.get('VERSION', 'unknown')
        }), 200

    @health_bp.route('/readiness', methods=['GET'])
    def readiness_check() -> Tuple[Response, int]:
        """
        Readiness check for container orchestration systems.

        Returns:
            Tuple[Response, int]: JSON response with status and HTTP status code
        """
        db_status = check_database_health()
        response = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "components": {
                "database": db_status,
                "cache": check_cache_health(),
            }
        }

        if db_status["status"] == "healthy":
            response["status"] = "ready"
            return jsonify(response), 200

        response["status"] = "not_ready"
        return jsonify(response), 503

    app.register_blueprint(health_bp)
