"""
Error taxonomy for the tracker API.

Every error carries the HTTP status it maps to; ``register_error_handlers``
renders them in the same ``{'success': False, 'error': ...}`` envelope the
routes use for their own responses.
"""

import logging

from flask import jsonify
from sqlalchemy.exc import SQLAlchemyError

from database import db

logger = logging.getLogger(__name__)


class TrackerError(Exception):
    status_code = 500

    def __init__(self, message, errors=None):
        super().__init__(message)
        self.message = message
        self.errors = errors or []

    def to_dict(self):
        payload = {'success': False, 'error': self.message}
        if self.errors:
            payload['errors'] = self.errors
        return payload


class ValidationError(TrackerError):
    """Malformed query parameters or form fields."""
    status_code = 400


class ReferentialError(TrackerError):
    """A reference points at a row that does not exist."""
    status_code = 400


class InUseError(ReferentialError):
    """Delete refused because other rows still reference the entity."""
    status_code = 409


class AuthorizationError(TrackerError):
    status_code = 403


class NotFoundError(TrackerError):
    status_code = 404


def get_or_404(model, entity_id, label=None):
    """Fetch ``model`` by primary key or raise NotFoundError."""
    entity = db.session.get(model, entity_id)
    if entity is None:
        raise NotFoundError(f'{label or model.__name__} not found')
    return entity


def register_error_handlers(app):
    @app.errorhandler(TrackerError)
    def handle_tracker_error(error):
        db.session.rollback()
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(SQLAlchemyError)
    def handle_storage_error(error):
        db.session.rollback()
        logger.error(f"Storage error: {error}")
        return jsonify({'success': False, 'error': 'Storage failure'}), 500

    @app.errorhandler(404)
    def handle_not_found(error):
        return jsonify({'success': False, 'error': 'Not found'}), 404

    @app.errorhandler(405)
    def handle_method_not_allowed(error):
        return jsonify({'success': False, 'error': 'Method not allowed'}), 405
