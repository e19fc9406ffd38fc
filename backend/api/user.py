import logging
from flask import Blueprint, jsonify
from flask_security import auth_required

from backend.api.helpers import current_actor, json_body, service_error_response, unexpected_error_response
from backend.extensions import limiter
from backend.schemas.user_schema import PublicUserSchema, UserSchema
from backend.services.errors import ServiceError
from backend.services.password_reset_service import PasswordResetService
from backend.services.user_service import UserService

user_bp = Blueprint('user', __name__)
logger = logging.getLogger(__name__)

user_schema = UserSchema()
public_user_schema = PublicUserSchema()

RESET_REQUESTED_MESSAGE = 'If an account with that email exists, a password reset link has been sent.'


@user_bp.route('/users/register', methods=['POST'])
@limiter.limit("10 per hour")
def register():
    """
    Create a landlord or contractor account.
    Request body:
        - email, username, password (required)
        - user_type (required: landlord or contractor)
        - full_name, phone (optional)
    """
    try:
        user = UserService.register(json_body())
        return jsonify(user_schema.dump(user)), 201
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('register', e)


@user_bp.route('/users/me', methods=['GET'])
@auth_required()
def me():
    return jsonify(user_schema.dump(current_actor())), 200


@user_bp.route('/users/me', methods=['PATCH', 'PUT'])
@auth_required()
def update_me():
    try:
        user = UserService.update_user(current_actor(), json_body())
        return jsonify(user_schema.dump(user)), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('update the account', e)


@user_bp.route('/users/<int:user_id>', methods=['GET'])
@auth_required()
def get_user(user_id):
    try:
        return jsonify(public_user_schema.dump(UserService.get_user(user_id))), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('fetch the user', e)


@user_bp.route('/users/forgot-password', methods=['POST'])
@limiter.limit("5 per hour")
def forgot_password():
    """
    Mail a password reset link.
    Request body:
        - email (required)
    The response is the same whether or not the email is registered.
    """
    try:
        PasswordResetService.request_password_reset(json_body().get('email'))
        return jsonify({'message': RESET_REQUESTED_MESSAGE}), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('request a password reset', e)


@user_bp.route('/users/reset-password/<token>', methods=['GET'])
@limiter.limit("30 per hour")
def verify_reset_token(token):
    try:
        PasswordResetService.verify_token(token)
        return jsonify({'valid': True}), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('verify the reset token', e)


@user_bp.route('/users/reset-password', methods=['POST'])
@limiter.limit("10 per hour")
def reset_password():
    """
    Set a new password.
    Request body:
        - token (required, from the reset email)
        - password (required), confirm_password (optional)
    """
    try:
        PasswordResetService.reset_password(json_body())
        return jsonify({'message': 'Your password has been reset. Please log in again.'}), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('reset the password', e)
