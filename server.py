import logging
from datetime import datetime, timedelta

from flask import Flask, current_app, request, jsonify
from werkzeug.exceptions import HTTPException

import config
import planner_api
from db import StoreHandle
from core.errors import ValidationError, NotFoundError, StoreConnectionError

logger = logging.getLogger(__name__)


def _store() -> StoreHandle:
    return current_app.config['TASK_STORE']


def _json_body():
    data = request.get_json(silent=True)
    if data is None:
        raise ValidationError("Invalid JSON format.")
    return data


def create_app(store: StoreHandle = None, meeting_lead_minutes: int = None) -> Flask:
    """Build the Flask app around an injected store handle.

    When no handle is given one is built from DATABASE_URL; the caller owns
    its lifetime either way.
    """
    app = Flask(__name__)
    app.config['TASK_STORE'] = store or StoreHandle(config.DATABASE_URL)
    minutes = config.NOTIFICATION_WINDOW_MINUTES if meeting_lead_minutes is None else meeting_lead_minutes
    app.config['MEETING_LEAD'] = timedelta(minutes=minutes)

    # --- Error mapping ---
    @app.errorhandler(ValidationError)
    def handle_validation(e):
        logger.debug(f"Rejected request to {request.path}: {e}")
        return jsonify({"success": False, "message": str(e)}), 400

    @app.errorhandler(NotFoundError)
    def handle_not_found(e):
        return jsonify({"success": False, "message": "Task not found."}), 404

    @app.errorhandler(StoreConnectionError)
    def handle_store_down(e):
        return jsonify({"success": False, "message": "Task store unavailable, retry later."}), 503

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        if isinstance(e, HTTPException):
            return e
        logger.exception(f"Unhandled error on {request.method} {request.path}:")
        return jsonify({"success": False, "message": "Internal server error."}), 500

    # --- Health check endpoint ---
    @app.route('/health', methods=['GET'])
    def health_check():
        """Read-only health check route for deployment verification."""
        return jsonify({"status": "ok", "message": "Service is healthy."}), 200

    @app.route('/api/testConnection', methods=['GET'])
    def test_connection():
        result = planner_api.check_connection(_store())
        return jsonify({"success": True, "message": result['message']}), 200

    # --- Task CRUD ---
    @app.route('/api/tasks', methods=['GET'])
    def get_tasks():
        return jsonify({"success": True, "tasks": planner_api.list_tasks(_store())}), 200

    @app.route('/api/tasks', methods=['POST'])
    def post_task():
        task = planner_api.add_task(_store(), _json_body())
        return jsonify({"success": True, "task": task}), 201

    @app.route('/api/tasks', methods=['PATCH'])
    @app.route('/api/tasks/<task_id>', methods=['PATCH'])
    def patch_task(task_id=None):
        task = planner_api.update_task(_store(), _json_body(), task_id=task_id)
        return jsonify({"success": True, "task": task}), 200

    @app.route('/api/tasks', methods=['DELETE'])
    def delete_task_by_body():
        result = planner_api.delete_task(_store(), _json_body())
        return jsonify({"success": True, "message": result['message']}), 200

    @app.route('/api/tasks/<task_id>', methods=['DELETE'])
    def delete_task_by_path(task_id):
        result = planner_api.delete_task(_store(), task_id=task_id)
        return jsonify({"success": True, "message": result['message']}), 200

    # --- Time-relative views ---
    @app.route('/api/notifications', methods=['GET'])
    def get_notifications():
        tasks = planner_api.get_notifications(
            _store(), now=datetime.now(), meeting_lead=current_app.config['MEETING_LEAD'])
        return jsonify({"success": True, "tasks": tasks}), 200

    @app.route('/api/tasks/upcoming', methods=['GET'])
    def get_upcoming():
        tasks = planner_api.get_upcoming_works(_store(), now=datetime.now())
        return jsonify({"success": True, "tasks": tasks}), 200

    @app.route('/api/calendar/events', methods=['GET'])
    def get_calendar_events():
        return jsonify({"success": True, "events": planner_api.get_calendar_events(_store())}), 200

    return app
