import logging
import uuid
from typing import Optional

from flask import current_app
from flask_mail import Message
from flask_security.utils import hash_password
from sqlalchemy import func

from backend.extensions import db, mail
from backend.models.password_reset_token import PasswordResetToken
from backend.models.user import User
from backend.schemas.user_schema import ForgotPasswordSchema, ResetPasswordSchema
from backend.services.common import atomic, load_payload
from backend.services.errors import ValidationError
from backend.utils.validation import validate_password_strength

logger = logging.getLogger(__name__)

INVALID_TOKEN_MESSAGE = "Invalid or expired reset token."


class PasswordResetService:
    """
    Forgot-password flow. A single-use token is mailed to the account owner
    and exchanged for a new password before it expires.
    """

    @staticmethod
    def request_password_reset(email: str) -> Optional[str]:
        """
        Issue a reset token and mail the reset link.

        Unknown or deactivated accounts are not an error, so the endpoint
        cannot be used to find out which emails are registered.

        Returns:
            The raw token, or None when no active account matched.
        """
        payload = load_payload(ForgotPasswordSchema(), {'email': email})
        address = payload['email'].strip().lower()
        user = User.query.filter(func.lower(User.email) == address).first()
        if user is None or not user.active:
            logger.info("Password reset requested for an unknown or inactive account")
            return None

        expiry_hours = current_app.config.get('PASSWORD_RESET_TOKEN_HOURS', 1)
        with atomic('issue the password reset token'):
            token, raw_token = PasswordResetToken.create_token(user.id, expiry_hours)
            db.session.add(token)

        frontend_url = current_app.config.get('FRONTEND_URL', '').rstrip('/')
        reset_link = f"{frontend_url}/reset-password/{raw_token}"
        # The token stays valid even when delivery fails
        PasswordResetService._send_reset_email(user, reset_link, expiry_hours)
        logger.info(f"Password reset token issued for user {user.id}")
        return raw_token

    @staticmethod
    def verify_token(raw_token: str) -> User:
        token = PasswordResetToken.find_valid(raw_token)
        if token is None:
            raise ValidationError(INVALID_TOKEN_MESSAGE)
        return token.user

    @staticmethod
    def reset_password(data) -> User:
        """
        Set a new password using a reset token. The token is consumed and the
        user's auth tokens are invalidated.
        """
        payload = load_payload(ResetPasswordSchema(), data)
        is_valid, errors = validate_password_strength(payload['password'])
        if not is_valid:
            raise ValidationError('; '.join(errors), errors={'password': errors})

        with atomic('reset the password'):
            token = PasswordResetToken.consume(payload['token'])
            if token is None:
                raise ValidationError(INVALID_TOKEN_MESSAGE)
            user = token.user
            user.password = hash_password(payload['password'])
            user.fs_uniquifier = str(uuid.uuid4())

        logger.info(f"Password reset completed for user {user.id}")
        return user

    @staticmethod
    def _send_reset_email(user: User, reset_link: str, expiry_hours: int) -> bool:
        try:
            msg = Message(
                subject="Reset your Tradeboard password",
                recipients=[user.email],
                body=(
                    f"Hello {user.full_name or user.username},\n\n"
                    f"Use the link below to choose a new password. It expires in {expiry_hours} hour(s).\n\n"
                    f"{reset_link}\n\n"
                    "If you did not ask for a password reset you can ignore this email."
                ),
            )
            mail.send(msg)
            return True
        except Exception as e:
            logger.error(f"Failed to send password reset email to user {user.id}: {e}", exc_info=True)
            return False
