import logging
from flask import jsonify, request
from flask_security import current_user

from backend.extensions import db

logger = logging.getLogger(__name__)

GENERIC_ERROR = 'An unexpected error occurred. Please try again later.'


def current_actor():
    """The authenticated User behind the request, unwrapped from the proxy."""
    return current_user._get_current_object()


def json_body():
    return request.get_json(silent=True) or {}


def service_error_response(se):
    if se.code >= 500:
        return jsonify({'error': se.message}), se.code
    return jsonify(se.to_dict()), se.code


def unexpected_error_response(action, e):
    db.session.rollback()
    logger.error(f"Error while trying to {action}: {e}", exc_info=True)
    return jsonify({'error': GENERIC_ERROR}), 500
