import hashlib
import secrets
from datetime import timedelta

from backend.extensions import db
from backend.utils.timezone_utils import utc_now_naive


class PasswordResetToken(db.Model):
    __tablename__ = 'password_reset_token'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)
    # Only the SHA-256 digest is stored; the raw token exists in the e-mail alone
    token_hash = db.Column(db.String(64), nullable=False, unique=True, index=True)
    created_at = db.Column(db.DateTime, default=utc_now_naive, nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False)
    used_at = db.Column(db.DateTime, nullable=True)

    user = db.relationship('User', backref=db.backref('password_reset_tokens', cascade='all, delete-orphan'))

    @staticmethod
    def hash_token(raw_token):
        return hashlib.sha256(raw_token.encode()).hexdigest()

    @classmethod
    def create_token(cls, user_id, expiry_hours=1):
        """
        Create a new password reset token

        Returns:
            tuple: (PasswordResetToken instance, raw_token_string)
        """
        raw_token = secrets.token_urlsafe(32)
        token = cls(
            user_id=user_id,
            token_hash=cls.hash_token(raw_token),
            expires_at=utc_now_naive() + timedelta(hours=expiry_hours),
        )
        return token, raw_token

    @classmethod
    def find_valid(cls, raw_token):
        """The unused, unexpired token matching ``raw_token``, or None."""
        if not raw_token:
            return None
        token = cls.query.filter_by(token_hash=cls.hash_token(raw_token), used_at=None).first()
        if token is None or token.is_expired():
            return None
        return token

    @classmethod
    def consume(cls, raw_token):
        """
        Mark the token used with a single conditional UPDATE so two concurrent
        resets cannot both succeed. Returns the token, or None when it is
        unknown, expired or already used.
        """
        if not raw_token:
            return None
        now = utc_now_naive()
        token_hash = cls.hash_token(raw_token)
        rows_updated = db.session.query(cls).filter(
            cls.token_hash == token_hash,
            cls.used_at.is_(None),
            cls.expires_at > now,
        ).update({'used_at': now}, synchronize_session=False)
        if rows_updated != 1:
            return None
        return db.session.query(cls).filter_by(token_hash=token_hash).populate_existing().first()

    def is_expired(self, now=None):
        return (now or utc_now_naive()) > self.expires_at

    def __repr__(self):
        return f'<PasswordResetToken user_id={self.user_id} expires_at={self.expires_at} used_at={self.used_at}>'
