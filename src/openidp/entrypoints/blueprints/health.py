"""ABOUTME: Health check endpoint for monitoring service status
ABOUTME: Reports database connectivity and the number of registered clients as JSON"""

import structlog
from flask import Blueprint, current_app, jsonify
from flask.typing import ResponseReturnValue
from sqlalchemy.exc import SQLAlchemyError

from openidp.entrypoints.views import get_uow

logger = structlog.get_logger(__name__)

health_bp = Blueprint("health", __name__)


def check_database() -> tuple[bool, int | str]:
    """
    Check database connectivity and return the client count.

    Returns:
        Tuple of (success: bool, client_count: int | "UNKNOWN")
    """
    try:
        with get_uow() as uow:
            client_count = len(list(uow.clients.all()))
        return True, client_count
    except SQLAlchemyError as e:
        logger.error("health check database error", error=str(e))
        return False, "UNKNOWN"


@health_bp.route("/health")
def health_check() -> ResponseReturnValue:
    """
    Health check endpoint returning JSON with system status.

    HTTP status 200 if the database is reachable, 500 otherwise.
    """
    db_ok, client_count = check_database()
    response_data = {
        "database_ok": db_ok,
        "client_count": client_count,
        "email_backend": current_app.config["EMAIL_BACKEND"],
    }
    return jsonify(response_data), 200 if db_ok else 500
