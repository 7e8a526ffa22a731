"""
errors.py — Admin-surface error taxonomy.

Display surfaces never raise these; they degrade instead (see degrade.py).
Admin blueprints register render_error() so every DashboardError comes back
as JSON {"error": message} with its status code.
"""

from flask import jsonify


class DashboardError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(DashboardError):
    status_code = 400


class ConflictError(DashboardError):
    # Duplicate URLs are reported as 400, not 409, to keep the admin panel contract
    status_code = 400


class NotFoundError(DashboardError):
    status_code = 404


class StorageError(DashboardError):
    status_code = 500


def render_error(err: DashboardError):
    return jsonify({"error": err.message}), err.status_code
