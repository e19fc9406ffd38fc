from enum import Enum
from backend.extensions import db
from backend.utils.timezone_utils import utc_now_naive
from flask_security import UserMixin
from .role import roles_users


class UserType(Enum):
    LANDLORD = "landlord"
    CONTRACTOR = "contractor"

    @classmethod
    def values(cls):
        return [member.value for member in cls]


class User(db.Model, UserMixin):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False)
    username = db.Column(db.String(64), unique=True, nullable=False)
    password = db.Column(db.String(255), nullable=False)
    full_name = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    user_type = db.Column(db.String(16), nullable=False, index=True)
    active = db.Column(db.Boolean(), default=True, nullable=False)
    fs_uniquifier = db.Column(db.String(64), unique=True, nullable=False)
    created_at = db.Column(db.DateTime, default=utc_now_naive, nullable=False)
    updated_at = db.Column(db.DateTime, default=utc_now_naive, onupdate=utc_now_naive, nullable=False)
    roles = db.relationship('Role', secondary=roles_users, backref=db.backref('users', lazy='dynamic'))

    landlord_profile = db.relationship('LandlordProfile', back_populates='user', uselist=False)
    contractor_profile = db.relationship('ContractorProfile', back_populates='user', uselist=False)

    @property
    def is_landlord(self):
        return self.user_type == UserType.LANDLORD.value

    @property
    def is_contractor(self):
        return self.user_type == UserType.CONTRACTOR.value

    @property
    def profile(self):
        return self.contractor_profile if self.is_contractor else self.landlord_profile

    @classmethod
    def query_active(cls):
        """Query active (not deactivated) users only"""
        return cls.query.filter_by(active=True)

    def __repr__(self):
        return f"<User id={self.id} {self.user_type} {self.email}>"
