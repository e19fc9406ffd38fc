import logging
import uuid
from typing import Any, Dict

from flask_security.utils import hash_password
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from backend.extensions import db
from backend.models.role import Role
from backend.models.user import User
from backend.schemas.user_schema import RegisterSchema, UserUpdateSchema
from backend.services.common import atomic, get_or_404, load_payload
from backend.services.errors import ConflictError, ValidationError
from backend.services.service_area_service import create_profile_for
from backend.utils.validation import sanitize_string, validate_password_strength

logger = logging.getLogger(__name__)


class UserService:

    @staticmethod
    def ensure_role(name: str) -> Role:
        role = Role.query.filter_by(name=name).first()
        if role is None:
            role = Role(name=name, description=f"{name.capitalize()} account")
            db.session.add(role)
        return role

    @staticmethod
    def register(data: Dict[str, Any]) -> User:
        """
        Create a landlord or contractor account together with its profile.
        The user gets the role named after its type.
        """
        payload = load_payload(RegisterSchema(), data)

        is_valid, errors = validate_password_strength(payload['password'])
        if not is_valid:
            raise ValidationError('; '.join(errors), errors={'password': errors})

        email = payload['email'].strip().lower()
        username = payload['username'].strip()
        if User.query.filter(func.lower(User.email) == email).first() is not None:
            raise ConflictError("An account with this email already exists")
        if User.query.filter(func.lower(User.username) == username.lower()).first() is not None:
            raise ConflictError("This username is taken")

        with atomic('create the account'):
            user = User(
                email=email,
                username=username,
                password=hash_password(payload['password']),
                full_name=sanitize_string(payload.get('full_name'), 255),
                phone=payload.get('phone'),
                user_type=payload['user_type'],
                active=True,
                fs_uniquifier=str(uuid.uuid4()),
            )
            user.roles.append(UserService.ensure_role(payload['user_type']))
            db.session.add(user)
            create_profile_for(user)
            try:
                db.session.flush()
            except IntegrityError:
                raise ConflictError("An account with this email or username already exists")

        logger.info(f"Registered {user.user_type} account {user.id} ({user.email})")
        return user

    @staticmethod
    def get_user(user_id: int) -> User:
        return get_or_404(User, user_id, 'User')

    @staticmethod
    def update_user(actor, data: Dict[str, Any]) -> User:
        """Update the actor's own contact details. The account type never changes."""
        payload = load_payload(UserUpdateSchema(), data, partial=True)
        with atomic('update the account'):
            for key, value in payload.items():
                setattr(actor, key, sanitize_string(value, 255) if isinstance(value, str) else value)
        logger.info(f"User {actor.id} updated {sorted(payload)}")
        return actor
