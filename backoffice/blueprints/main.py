"""Main blueprint with health check endpoint."""
from flask import Blueprint, jsonify, current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from backoffice.database import get_session

main_bp = Blueprint('main', __name__)


@main_bp.route('/health')
def health():
    """
    Health check endpoint that validates database connection.

    Returns:
        200: Healthy (DB connected)
        500: Unhealthy (DB error)
    """
    session = get_session()
    try:
        row = session.execute(text("SELECT 1 as health_check")).fetchone()
        session.rollback()
    except SQLAlchemyError as e:
        session.rollback()
        current_app.logger.error(f"Health check failed: {e}")
        return jsonify({
            'status': 'unhealthy',
            'database': 'disconnected',
            'message': 'Failed to connect to database'
        }), 500

    if row and row[0] == 1:
        return jsonify({
            'status': 'healthy',
            'database': 'connected',
            'message': 'Database connection successful'
        }), 200

    return jsonify({
        'status': 'unhealthy',
        'database': 'error',
        'message': 'Unexpected query result'
    }), 500
